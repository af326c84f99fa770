from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, Request

from storefront.auth.access import Identity, get_access_control
from storefront.errors import ValidationError
from storefront.orders.workflow import OrderWorkflow

router = APIRouter(
    prefix="/orders",
    tags=["orders"],
)


def get_identity(authorization: Optional[str] = Header(default=None)) -> Identity:
    return get_access_control().authenticate(authorization)


async def get_order_payload(request: Request, identity: Identity = Depends(get_identity)) -> Any:
    """Raw JSON body, read only once the caller is authenticated."""
    if not await request.body():
        return None
    try:
        return await request.json()
    except ValueError:
        raise ValidationError("Request body is not valid JSON") from None


def get_workflow(request: Request) -> OrderWorkflow:
    return OrderWorkflow(request.app.state.stores)


@router.post("", status_code=201)
def create_order(
    identity: Identity = Depends(get_identity),
    payload: Any = Depends(get_order_payload),
    workflow: OrderWorkflow = Depends(get_workflow),
):
    # the workflow owns request validation and its 400s
    order = workflow.place_order(identity, payload)
    return order.to_json()
