from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class ConversionRequest(BaseModel):
    """Arguments accepted by the PDF → DOCX tool."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    content_base64: str | None = Field(
        default=None, alias="base64", description="Base64-encoded PDF without data: prefix"
    )
    file_url: str | None = Field(default=None, alias="fileUrl", description="Direct URL to download the PDF")
    file_path: str | None = Field(
        default=None, alias="filePath", description="Absolute or server-relative path to the PDF"
    )
    file_id: str | None = Field(default=None, description="ID of an uploaded PDF in the system")
    filename: str | None = Field(default=None, description="Output DOCX filename. Defaults to converted.docx")
    language: str | None = Field(default=None, description="OCR language code, e.g., eng")
    timeout_ms: float | None = Field(
        default=None, alias="timeoutMs", ge=0, description="Processing timeout in ms; 0 uses the default"
    )

    @property
    def has_source(self) -> bool:
        return bool(self.content_base64 or self.file_url or self.file_path)


class ConversionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    mime: str = DOCX_MIME
    content_base64: str | None = Field(default=None, alias="base64")
    url: str | None = None
    task_id: str | None = None

    @model_validator(mode="after")
    def _one_payload(self) -> ConversionResult:
        if (self.content_base64 is None) == (self.url is None):
            raise ValueError("exactly one of base64 or url must be set")
        return self

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ToolInfo(BaseModel):
    name: str
    description: str
    parameters: dict[str, Any]


class ToolInvocationResponse(BaseModel):
    tool: str
    result: dict[str, Any]
