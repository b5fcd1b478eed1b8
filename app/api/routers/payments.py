from fastapi import APIRouter, Depends, Query, Request, status

from app.api.dependencies import get_current_user_id, get_use_cases
from app.api.schemas.payments import (
    CreateOrderData,
    CreateOrderRequest,
    CreateOrderResponse,
    CurrencyListResponse,
    CurrencyResponse,
    PaymentStatusRequest,
    PaymentStatusResponse,
)

router = APIRouter()


@router.get(
    "/nowpayments/currencies",
    response_model=CurrencyListResponse,
    status_code=status.HTTP_200_OK,
)
async def list_nowpayments_currencies(use_cases=Depends(get_use_cases)) -> CurrencyListResponse:
    currencies = await use_cases["list_currencies"].execute("nowpayments")
    return CurrencyListResponse(data=[CurrencyResponse(**currency) for currency in currencies])


@router.post(
    "/{gateway}/create-order",
    response_model=CreateOrderResponse,
    status_code=status.HTTP_200_OK,
)
async def create_order(
    gateway: str,
    payload: CreateOrderRequest,
    user_id: str | None = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> CreateOrderResponse:
    result = await use_cases["create_order"].execute(
        gateway_name=gateway,
        user_id=user_id,
        command=payload.to_command(),
    )
    return CreateOrderResponse(
        message="Order created successfully",
        data=CreateOrderData.from_result(result),
    )


@router.post("/{gateway}/webhook", status_code=status.HTTP_200_OK)
async def gateway_webhook(
    gateway: str,
    request: Request,
    use_cases=Depends(get_use_cases),
) -> dict:
    # Signatures are computed over the exact bytes received
    raw_body = await request.body()
    headers = {key.lower(): value for key, value in request.headers.items()}
    ack = await use_cases["reconcile_payment"].apply_webhook_event(gateway, headers, raw_body)
    return ack.to_body()


@router.get(
    "/{gateway}/status",
    response_model=PaymentStatusResponse,
    status_code=status.HTTP_200_OK,
)
async def get_payment_status(
    gateway: str,
    order_id: str | None = Query(default=None),
    use_cases=Depends(get_use_cases),
) -> PaymentStatusResponse:
    dto = await use_cases["get_payment_status"].execute(gateway, order_id)
    return PaymentStatusResponse.from_dto(dto)


@router.post(
    "/{gateway}/status",
    response_model=PaymentStatusResponse,
    status_code=status.HTTP_200_OK,
)
async def post_payment_status(
    gateway: str,
    payload: PaymentStatusRequest,
    use_cases=Depends(get_use_cases),
) -> PaymentStatusResponse:
    dto = await use_cases["get_payment_status"].execute(gateway, payload.order_id)
    return PaymentStatusResponse.from_dto(dto)
