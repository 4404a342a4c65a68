"""
Pydantic schemas for transcription module.
DTOs for API input/output validation.
"""

from typing import List

from pydantic import BaseModel, Field


class Paragraph(BaseModel):
    """One meaning-based paragraph of a structured transcript."""

    summary: str = Field(..., description="One-line summary of the paragraph")
    content: str = Field(..., description="Corrected paragraph text")


class TranscriptDocument(BaseModel):
    """
    Structured transcript returned by both transcription flows.
    raw_transcript is only present for audio transcriptions.
    """

    raw_transcript: str | None = Field(
        None, description="Unprocessed speech-to-text output"
    )
    paragraphs: List[Paragraph] = Field(
        default_factory=list, description="Paragraphs in source order"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "raw_transcript": "안녕하세요 오늘 회의 안건은 두가지 입니다",
                "paragraphs": [
                    {
                        "summary": "회의 안건 소개",
                        "content": "안녕하세요. 오늘 회의 안건은 두 가지입니다.",
                    }
                ],
            }
        }
    }


class TranscribeTextRequest(BaseModel):
    """Request DTO for the text structuring endpoint."""

    transcript: str | None = Field(None, description="Raw transcript to structure")

    model_config = {
        "json_schema_extra": {
            "example": {"transcript": "안녕하세요 오늘 회의 안건은 두가지 입니다"}
        }
    }


class ErrorResponse(BaseModel):
    """Error body returned by every endpoint."""

    error: str = Field(..., description="Error message")

    model_config = {
        "json_schema_extra": {
            "example": {"error": "No transcript content to process"}
        }
    }
