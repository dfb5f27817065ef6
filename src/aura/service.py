"""Design reverse-engineering service.

Validates a raw request, builds the prompts, runs the invocation pipeline
and wraps the outcome in a {success, data, message} envelope with an
HTTP-style status code. Only request shape errors (400) and unexpected
failures (500) are reported as failures; a failed real-LLM call has already
been absorbed by the pipeline.
"""

import logging
from dataclasses import dataclass
from typing import Any

from aura.llm.prompts import build_system_prompt, build_user_prompt
from aura.models.requests import RequestShapeError, parse_design_request
from aura.pipeline import InvocationPipeline

logger = logging.getLogger(__name__)


@dataclass
class ServiceResponse:
    """Envelope returned to the transport layer.

    Attributes:
        status_code: HTTP-style status (200, 400, 500)
        body: JSON-serializable response body
    """

    status_code: int
    body: dict[str, Any]

    @property
    def success(self) -> bool:
        return bool(self.body.get("success"))


def reverse_engineer_design(payload: Any, pipeline: InvocationPipeline) -> ServiceResponse:
    """Run a design reverse-engineering request end to end.

    Args:
        payload: Decoded JSON request body
        pipeline: Invocation pipeline to run the analysis

    Returns:
        ServiceResponse with status 200, 400 or 500
    """
    try:
        request = parse_design_request(payload)
        logger.info("Reverse engineering level: %s", request.analysis_level.value)

        system_prompt = build_system_prompt(request.analysis_level)
        user_prompt = build_user_prompt(request)
        logger.debug(
            "Prompt lengths: system=%d user=%d", len(system_prompt), len(user_prompt)
        )

        data = pipeline.invoke(
            system_prompt,
            user_prompt,
            request.analysis_level,
            request.has_image,
            request.use_real_llm,
            image_data=request.image_data,
            image_type=request.image_type,
        )

    except RequestShapeError as e:
        logger.warning("Invalid reverse-engineering request: %s", e)
        return ServiceResponse(
            status_code=400,
            body={
                "success": False,
                "message": "Invalid request data",
                "errors": e.errors,
            },
        )
    except Exception as e:
        logger.error("Design reverse engineering failed: %s", e)
        return ServiceResponse(
            status_code=500,
            body={
                "success": False,
                "message": str(e) or "Failed to reverse engineer design",
            },
        )

    logger.info("Design analysis completed successfully")
    return ServiceResponse(
        status_code=200,
        body={
            "success": True,
            "data": data,
            "message": "Design reverse engineered successfully",
        },
    )
