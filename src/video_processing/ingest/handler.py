"""Lambda handler for ingestion events.

Exposed through API Gateway as ``POST /process-video``. The body is the
push envelope sent when a raw video lands in the intake bucket.

Status codes:
- 200: video processed and published
- 400: malformed envelope, or video already processing/processed
- 500: object store, metadata store or transcoder failure
"""

import asyncio
from functools import lru_cache

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.event_handler import APIGatewayRestResolver, Response, content_types
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from ..shared.models import PipelineResult
from .pipeline import VideoPipeline, build_pipeline

logger = Logger(service="video-processing")
tracer = Tracer(service="video-processing")
metrics = Metrics(service="video-processing", namespace="VideoProcessing")

app = APIGatewayRestResolver()


@lru_cache(maxsize=1)
def get_pipeline() -> VideoPipeline:
    """Build the pipeline once per container."""
    return build_pipeline()


@app.post("/process-video")
@tracer.capture_method
def process_video() -> Response:
    """Run the pipeline for one push envelope."""
    result = asyncio.run(get_pipeline().process(app.current_event.decoded_body))
    _record_outcome(result)
    return Response(
        status_code=result.status_code,
        content_type=content_types.TEXT_PLAIN,
        body=result.message,
    )


def _record_outcome(result: PipelineResult) -> None:
    if result.is_success:
        metrics.add_metric(name="VideosProcessed", unit=MetricUnit.Count, value=1)
        if result.cleanup_error:
            metrics.add_metric(name="ScratchCleanupErrors", unit=MetricUnit.Count, value=1)
    elif result.status_code < 500:
        metrics.add_metric(name="VideosRejected", unit=MetricUnit.Count, value=1)
    else:
        metrics.add_metric(name="VideosFailed", unit=MetricUnit.Count, value=1)

    logger.info(
        "Request finished",
        extra={
            "video_id": result.video_id,
            "status_code": result.status_code,
            "stage": result.stage.value,
            "failed_stage": result.failed_stage.value if result.failed_stage else None,
        },
    )


@logger.inject_lambda_context(log_event=True)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def handler(event: dict, context: LambdaContext) -> dict:
    """Resolve the API Gateway event to the ``process_video`` route."""
    return app.resolve(event, context)
