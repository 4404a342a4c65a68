"""
Run the API server with uvicorn.
"""

import uvicorn

from dictation.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "dictation.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
