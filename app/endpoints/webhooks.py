from fastapi import APIRouter, Request, Depends, HTTPException
from sqlalchemy.orm import Session
from stripe import SignatureVerificationError

from app.utils import deps
from app.schemas.payment import WebhookAck
from app.services.stripe import stripe_payment_service
from app.services.webhook import webhook_reconciler

router = APIRouter()

@router.post("/stripe", response_model=WebhookAck)
async def stripe_webhook(request: Request, db: Session = Depends(deps.get_db)):
    payload = await request.body()
    sig_header = request.headers.get('stripe-signature')

    try:
        event = stripe_payment_service.construct_webhook_event(payload, sig_header)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SignatureVerificationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return await webhook_reconciler.handle_event(db, event)
