"""Request schema for the design reverse-engineering entry point.

Validated with Pydantic. Field names follow the JSON wire format
(camelCase) through aliases; attributes are snake_case.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from aura.models.analysis import AnalysisLevel

InputType = Literal["figma", "image", "upload"]


class DesignFile(BaseModel):
    """One uploaded design file."""

    filename: str
    content: str


class DesignReverseEngineerRequest(BaseModel):
    """Caller input for a design reverse-engineering run."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    input_type: InputType = Field(alias="inputType")
    figma_url: str | None = Field(default=None, alias="figmaUrl")
    design_data: str = Field(alias="designData")
    image_data: str | None = Field(default=None, alias="imageData")
    image_type: str | None = Field(default=None, alias="imageType")
    file_data: list[DesignFile] | None = Field(default=None, alias="fileData")
    analysis_level: AnalysisLevel = Field(alias="analysisLevel")
    extract_user_flows: bool = Field(default=True, alias="extractUserFlows")
    include_accessibility: bool = Field(default=True, alias="includeAccessibility")
    use_real_llm: bool = Field(default=False, alias="useRealLLM")

    @property
    def has_image(self) -> bool:
        return bool(self.image_data)


class RequestShapeError(Exception):
    """Raised when a request does not match the schema.

    Attributes:
        errors: One entry per violated field ({field, message, type})
    """

    def __init__(self, errors: list[dict[str, str]]) -> None:
        self.errors = errors
        fields = ", ".join(e["field"] for e in errors) or "request"
        super().__init__(f"Invalid request data: {fields}")


def parse_design_request(payload: Any) -> DesignReverseEngineerRequest:
    """Validate a raw payload.

    Args:
        payload: Decoded JSON body

    Returns:
        Validated request

    Raises:
        RequestShapeError: If any field is missing or malformed
    """
    try:
        return DesignReverseEngineerRequest.model_validate(payload)
    except ValidationError as e:
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"]) or "request",
                "message": err["msg"],
                "type": err["type"],
            }
            for err in e.errors()
        ]
        raise RequestShapeError(errors) from e
