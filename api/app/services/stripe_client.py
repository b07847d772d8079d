# api/app/services/stripe_client.py
from __future__ import annotations

import json
import logging

import stripe

from ..settings import settings

log = logging.getLogger(__name__)

# ============================================================
# Stripe config
# ============================================================

if settings.STRIPE_SECRET_KEY:
    stripe.api_key = settings.STRIPE_SECRET_KEY


class StripeNotConfigured(RuntimeError):
    pass


# ============================================================
# Webhook Parser (used by billing.py)
# ============================================================

def parse_event(payload: bytes, sig_header: str):
    """
    Verify a Stripe webhook with the signing secret and return the event
    as a plain dict. Unsigned events are never accepted.
    """
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise StripeNotConfigured("STRIPE_WEBHOOK_SECRET is not set")

    try:
        stripe.Webhook.construct_event(
            payload=payload,
            sig_header=sig_header,
            secret=settings.STRIPE_WEBHOOK_SECRET,
        )
    except stripe.SignatureVerificationError as e:
        log.warning("Stripe signature verification failed: %s", e)
        raise
    except ValueError as e:
        log.warning("Stripe webhook payload could not be parsed: %s", e)
        raise

    return json.loads(payload)


# ============================================================
# League upgrade (one-time PaymentIntent)
# ============================================================

def create_league_upgrade_intent(
    league_id: int,
    league_name: str,
    admin_user_id: str,
    admin_email: str | None,
):
    """
    PaymentIntent for the flat per-league upgrade. The webhook reads
    metadata.leagueId to flip the league's paid flag.
    """
    if not settings.STRIPE_SECRET_KEY:
        raise StripeNotConfigured("STRIPE_SECRET_KEY is not set")

    return stripe.PaymentIntent.create(
        amount=settings.LEAGUE_UPGRADE_PRICE_CENTS,
        currency=settings.LEAGUE_UPGRADE_CURRENCY,
        metadata={
            "leagueId": str(league_id),
            "leagueName": league_name,
            "adminUserId": admin_user_id,
            "adminEmail": admin_email or "",
        },
        description=f"League Upgrade - {league_name}",
    )
