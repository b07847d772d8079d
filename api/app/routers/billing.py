# api/app/routers/billing.py
from __future__ import annotations

import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from .. import crud
from ..auth_firebase import get_current_user
from ..db import get_db
from ..schemas import PaymentIntentIn
from ..services import stripe_client

log = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["billing"])


# ============================================================
# League upgrade
# ============================================================

@router.post("/payment-intent")
def create_payment_intent(
    payload: PaymentIntentIn,
    fb_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    One-time upgrade for a league. Only the league creator can pay.
    Returns: { clientSecret, paymentIntentId }
    """
    if payload.league_id is None:
        raise HTTPException(status_code=400, detail="League ID is required")

    league = crud.get_league_or_404(db, payload.league_id)
    if league.admin_user_id != fb_user["uid"]:
        raise HTTPException(status_code=403, detail="Only league admins can upgrade leagues")
    if league.is_paid:
        raise HTTPException(status_code=400, detail="League is already upgraded")

    try:
        intent = stripe_client.create_league_upgrade_intent(
            league_id=league.id,
            league_name=league.name,
            admin_user_id=fb_user["uid"],
            admin_email=fb_user.get("email"),
        )
    except stripe_client.StripeNotConfigured:
        raise HTTPException(status_code=503, detail="Stripe is not configured on server")
    except stripe.StripeError as e:
        log.error("PaymentIntent create failed for league %s: %s", league.id, e)
        raise HTTPException(status_code=500, detail="Failed to create payment intent")

    log.info("PaymentIntent %s created for league %s", intent.id, league.id)
    return {"clientSecret": intent.client_secret, "paymentIntentId": intent.id}


# ============================================================
# Stripe Webhook
# ============================================================

@router.post("/webhook")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    if not sig_header:
        raise HTTPException(status_code=400, detail="Missing stripe-signature header")

    try:
        event = stripe_client.parse_event(payload, sig_header)
    except stripe_client.StripeNotConfigured:
        log.error("Webhook received but STRIPE_WEBHOOK_SECRET is not set")
        raise HTTPException(status_code=400, detail="Webhook secret not configured")
    except (ValueError, stripe.SignatureVerificationError):
        raise HTTPException(status_code=400, detail="Webhook signature verification failed")

    event_type = event["type"]
    data = event["data"]["object"]
    metadata = data.get("metadata") or {}

    if event_type == "payment_intent.succeeded":
        league_id = metadata.get("leagueId")
        if league_id:
            try:
                league = crud.mark_league_paid(db, int(league_id), data.get("id"))
                if league:
                    log.info("League %s upgraded by payment %s", league_id, data.get("id"))
                else:
                    log.warning("Payment %s for unknown league %s", data.get("id"), league_id)
            except Exception:
                # still acknowledged below
                db.rollback()
                log.error("Could not mark league %s paid", league_id, exc_info=True)

    elif event_type == "payment_intent.payment_failed":
        log.warning("Payment failed for league %s: %s", metadata.get("leagueId"), data.get("id"))

    else:
        log.info("Unhandled Stripe event type %s", event_type)

    return {"received": True}
