import uuid
from time import perf_counter
from typing import Optional

import azure.functions as func
from pydantic import ValidationError

from src.media.pipeline import ImagePipeline
from src.media.request_pipeline import pipeline_from_request
from src.shared.logging_utils import info as log_info, error as log_error
from src.specs.common.errors import ImagePipeError
from src.specs.models.http import ErrorResponse, TransformImageRequest


bp = func.Blueprint()


def _error_response(message: str, status_code: int, trace_id: str, exc: Optional[ImagePipeError] = None) -> func.HttpResponse:
    err = ErrorResponse(
        message=message,
        errorCode=exc.code if exc is not None else None,
        details=exc.details if exc is not None else None,
        traceId=trace_id,
    )
    return func.HttpResponse(
        body=err.model_dump_json(),
        mimetype="application/json",
        status_code=status_code,
    )


async def run_transform(req: func.HttpRequest) -> func.HttpResponse:
    start = perf_counter()
    trace_id = uuid.uuid4().hex

    if req.method == "GET":
        url = req.params.get("url")
        if not url:
            log_error(trace_id, "transform:missing_url")
            return func.HttpResponse("Missing url parameter", status_code=400)
        pipeline = ImagePipeline.from_url(url, req.params.get("format"), trace_id=trace_id)
        output_format = req.params.get("output")
    else:
        try:
            data = req.get_json()
        except ValueError:
            log_error(trace_id, "transform:invalid_json")
            return _error_response("Invalid JSON body", 400, trace_id)
        try:
            parsed = TransformImageRequest.model_validate(data)
        except ValidationError as ex:
            log_error(trace_id, "transform:invalid_request", error=str(ex))
            return _error_response(f"Invalid request: {ex}", 400, trace_id)
        pipeline = pipeline_from_request(parsed, trace_id=trace_id)
        output_format = parsed.output_format

    log_info(trace_id, "transform:accepted", method=req.method, steps=len(pipeline.step_names))
    try:
        response = await pipeline.build(output_format)
    except ImagePipeError as exc:
        log_error(trace_id, "transform:failed", code=exc.code, error=str(exc))
        return _error_response(str(exc), exc.status_code, trace_id, exc)
    except Exception as exc:  # pylint: disable=broad-except
        log_error(trace_id, "transform:crashed", error=repr(exc))
        return func.HttpResponse(f"Error: {exc}", status_code=500)

    duration_ms = int((perf_counter() - start) * 1000)
    log_info(trace_id, "transform:completed", durationMs=duration_ms, contentType=response.mimetype)
    return response


@bp.function_name(name="transform_image")
@bp.route(route="transform_image", methods=["GET", "POST"], auth_level=func.AuthLevel.ANONYMOUS)
async def transform_image(req: func.HttpRequest) -> func.HttpResponse:
    return await run_transform(req)
