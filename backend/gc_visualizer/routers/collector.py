from typing import Optional

from fastapi import APIRouter, Depends, Request

from ..models.schemas import HeapState, ObjectSpec, ResetRequest, SetRootRequest
from ..services.controller import CollectorController
from ..services.scenarios import SCENARIOS, get_scenario

router = APIRouter(prefix="/api", tags=["collector"])


def get_controller(request: Request) -> CollectorController:
    return request.app.state.controller


@router.get("/health")
async def health(request: Request) -> dict[str, str]:
    return {"status": "ok", "version": request.app.state.settings.version}


@router.get("/scenarios")
async def scenarios() -> list[str]:
    return sorted(SCENARIOS)


@router.get("/state", response_model=HeapState)
async def state(controller: CollectorController = Depends(get_controller)) -> HeapState:
    """Current phase, objects, mapping, root and allocation boundary."""
    return controller.state()


@router.post("/mark", response_model=HeapState)
async def mark(controller: CollectorController = Depends(get_controller)) -> HeapState:
    controller.mark()
    return controller.state()


@router.post("/prepare", response_model=HeapState)
async def prepare(controller: CollectorController = Depends(get_controller)) -> HeapState:
    controller.prepare()
    return controller.state()


@router.post("/crunch", response_model=HeapState)
async def crunch(controller: CollectorController = Depends(get_controller)) -> HeapState:
    controller.crunch()
    return controller.state()


@router.post("/step", response_model=HeapState)
async def step(controller: CollectorController = Depends(get_controller)) -> HeapState:
    """Advance to the next phase, whichever it is."""
    controller.step()
    return controller.state()


@router.post("/undo", response_model=HeapState)
async def undo(controller: CollectorController = Depends(get_controller)) -> HeapState:
    controller.undo()
    return controller.state()


@router.post("/new-cycle", response_model=HeapState)
async def new_cycle(controller: CollectorController = Depends(get_controller)) -> HeapState:
    controller.new_cycle()
    return controller.state()


@router.post("/reset", response_model=HeapState)
async def reset(
    body: Optional[ResetRequest] = None,
    controller: CollectorController = Depends(get_controller),
) -> HeapState:
    """Reload a scenario: an inline one, a built-in one by name, or the current one."""
    scenario = None
    if body is not None:
        if body.scenario is not None:
            scenario = body.scenario
        elif body.name is not None:
            scenario = get_scenario(body.name)
    controller.reset(scenario)
    return controller.state()


@router.put("/root", response_model=HeapState)
async def set_root(
    body: SetRootRequest,
    controller: CollectorController = Depends(get_controller),
) -> HeapState:
    controller.set_root(body.address)
    return controller.state()


@router.post("/objects", response_model=HeapState)
async def insert_object(
    spec: ObjectSpec,
    controller: CollectorController = Depends(get_controller),
) -> HeapState:
    controller.insert_object(spec)
    return controller.state()
