# spangraph/app/routes_spangraph.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, ConfigDict, Field

from spangraph.domain.aligner import should_display
from spangraph.domain.normalizer import annotations_to_dict, normalize
from spangraph.domain.spec import parse_spec
from spangraph.domain.types import IndexedInput
from spangraph.exceptions import ConfigError, RecordDataError
from spangraph.services.span_graph_service import SpanGraphRuntime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/spangraph")

# ---------------------------
# Request schemas
# ---------------------------

class NormalizeRequest(BaseModel):
    record: Dict[str, Any] = Field(..., description="Raw field values of one datapoint or prediction")
    spec: Dict[str, Any] = Field(..., description="Field name -> descriptor ({kind, align})")


class SpecRequest(BaseModel):
    spec: Dict[str, Any]


class SelectionRequest(BaseModel):
    id: Optional[str] = Field(None, description="Datapoint id (generated if omitted)")
    data: Optional[Dict[str, Any]] = Field(None, description="Datapoint record; omit to clear")
    clear: bool = Field(False, description="Clear the primary selection")


# ---------------------------
# Response schemas
# ---------------------------

class EdgeModel(BaseModel):
    # extra edge keys (score, ...) pass through
    model_config = ConfigDict(extra="allow")

    span1: List[int]
    label: str
    span2: Optional[List[int]] = None


class LayerModel(BaseModel):
    name: str
    edges: List[EdgeModel]


class TokenAnnotationModel(BaseModel):
    tokens: List[str]
    layers: List[LayerModel]


class NormalizeSuccessResponse(BaseModel):
    status: Literal["ok"] = "ok"
    annotations: Dict[str, TokenAnnotationModel]


class DisplayResponse(BaseModel):
    display: bool


class SelectionResponse(BaseModel):
    status: Literal["ok"] = "ok"
    selected_id: Optional[str] = None
    dataset: Optional[str] = None
    gold: Dict[str, TokenAnnotationModel]


class ModuleStateResponse(BaseModel):
    status: Literal["ok"] = "ok"
    model: str
    annotations: Dict[str, TokenAnnotationModel]
    is_loading: bool
    error: Optional[str] = None


class ModulesResponse(BaseModel):
    dataset: Optional[str] = None
    gold_display: bool
    pred_modules: List[str]


class ErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    error_type: str
    message: str


def _runtime(request: Request) -> SpanGraphRuntime:
    return request.app.state.runtime


def _error_response(e: Exception) -> ErrorResponse:
    if isinstance(e, ConfigError):
        logger.warning("spec error: %s", e)
        return ErrorResponse(error_type="config_error", message=str(e))
    logger.warning("record error: %s", e)
    return ErrorResponse(error_type="record_data_error", message=str(e))


# ---------------------------
# Routes
# ---------------------------

@router.post(
    "/normalize",
    response_model=Union[NormalizeSuccessResponse, ErrorResponse],
)
async def normalize_route(req: NormalizeRequest):
    """
    Stateless normalization.

    - input: raw record + spec
    - output: token field -> {tokens, layers[{name, edges}]}
    """
    try:
        annotations = normalize(req.record, parse_spec(req.spec))
    except (ConfigError, RecordDataError) as e:
        return _error_response(e)
    return NormalizeSuccessResponse(annotations=annotations_to_dict(annotations))


@router.post("/should_display", response_model=Union[DisplayResponse, ErrorResponse])
async def should_display_route(req: SpecRequest):
    try:
        return DisplayResponse(display=should_display(parse_spec(req.spec)))
    except ConfigError as e:
        return _error_response(e)


@router.get("/modules", response_model=ModulesResponse)
async def modules_route(request: Request):
    runtime = _runtime(request)
    return ModulesResponse(
        dataset=runtime.app_state.current_dataset,
        gold_display=should_display(runtime.app_state.current_dataset_spec),
        pred_modules=sorted(runtime.pred_modules),
    )


@router.put("/dataset/{name}", response_model=Union[ModulesResponse, ErrorResponse])
async def set_dataset_route(name: str, request: Request):
    runtime = _runtime(request)
    try:
        runtime.app_state.current_dataset = name
    except ConfigError as e:
        return _error_response(e)
    return await modules_route(request)


@router.post(
    "/selection",
    response_model=Union[SelectionResponse, ErrorResponse],
)
async def selection_route(
    req: SelectionRequest,
    request: Request,
    wait: bool = Query(False, description="Wait for model prediction fetches to settle"),
):
    """
    Update the primary selection.

    - clear=True or no data: selection cleared, pred state becomes {} immediately
    - otherwise: gold annotations returned, pred modules start fetching
    """
    runtime = _runtime(request)
    selection = runtime.selection_service

    if req.clear or req.data is None:
        selection.clear()
        selected_id = None
    else:
        selected_id = req.id or uuid.uuid4().hex
        selection.select(IndexedInput(id=selected_id, data=req.data))

    if wait:
        await runtime.drain()

    try:
        gold = runtime.gold_module.gold_display_data
    except (ConfigError, RecordDataError) as e:
        return _error_response(e)

    return SelectionResponse(
        selected_id=selected_id,
        dataset=runtime.app_state.current_dataset,
        gold=annotations_to_dict(gold),
    )


@router.get(
    "/modules/{model}/state",
    response_model=Union[ModuleStateResponse, ErrorResponse],
)
async def module_state_route(model: str, request: Request):
    module = _runtime(request).pred_modules.get(model)
    if module is None:
        return ErrorResponse(error_type="unknown_model", message=f"No span graph module for model '{model}'")

    return ModuleStateResponse(
        model=model,
        annotations=annotations_to_dict(module.pred_display_data.get()),
        is_loading=module.is_loading.get(),
        error=module.error.get(),
    )
