"""FastAPI dependencies that put routes behind an admission pipeline."""

from fastapi import Request


def admission(route_class: str):
    """
    Dependency that runs the app's pipeline for `route_class`.

    Usage: `dependencies=[Depends(admission("contact"))]`. Rejections raised by
    a stage propagate as HTTP errors before the route body runs.
    """
    async def run_admission(request: Request) -> None:
        pipeline = request.app.state.pipelines[route_class]
        await pipeline.admit(request)

    run_admission.__name__ = f"admit_{route_class}"
    return run_admission
