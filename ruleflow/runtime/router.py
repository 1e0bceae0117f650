"""Runtime API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request

from ruleflow.api_orchestrator.transport import FetchFn, create_default_fetch, create_httpx_fetch
from ruleflow.core.config import Settings, get_settings
from ruleflow.core.errors import DocumentValidationError

from . import service
from .schemas import ExecuteStepRequest, ExecuteStepResponse

router = APIRouter(prefix="/runtime", tags=["runtime"])


def get_fetch(request: Request) -> FetchFn:
    """Fetch function backed by the application's shared httpx client."""
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        return create_default_fetch(get_settings())
    return create_httpx_fetch(client)


@router.post("/execute", response_model=ExecuteStepResponse)
async def execute(
    body: ExecuteStepRequest,
    fetch: FetchFn = Depends(get_fetch),
    settings: Settings = Depends(get_settings),
) -> ExecuteStepResponse:
    """
    Execute one step of an application flow.

    Resolves the event against the flow, applies the rule set and runs the
    transition's API call. The response carries the next state, the updated
    data and context, the UI schema of the resulting page and the full trace.
    """
    try:
        result = await service.execute_step(
            flow=body.flow,
            ui_schemas_by_id=body.ui_schemas_by_id,
            rules=body.rules,
            api_mappings_by_id=body.api_mappings_by_id,
            state_id=body.state_id,
            event=body.event,
            context=body.context,
            data=body.data,
            fetch_fn=fetch,
            validate=body.validate_documents,
            correlation_id=body.correlation_id,
            version_id=body.version_id,
            settings=settings,
        )
    except DocumentValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={
                "message": "Document validation failed",
                "issues": [issue.to_json_dict() for issue in e.issues],
            },
        )

    return ExecuteStepResponse(
        next_state_id=result.next_state_id,
        updated_context=result.updated_context.to_document(),
        updated_data=result.updated_data,
        ui_schema=result.ui_schema,
        trace=result.trace.to_json_dict(),
    )
