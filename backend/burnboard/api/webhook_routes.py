"""
Webhook routes.
Receive pushes from the n8n automation that mirrors Accelo: daily burn
snapshots per client and the client list itself. Clients are matched on
their Accelo company id. Every log line carries the request id so it can be
traced back to the n8n execution that sent it.
"""
import logging

from fastapi import APIRouter, Depends, Request

from burnboard.api.deps import get_storage
from burnboard.models.schemas import (
    ClientsUpsertAck,
    ClientsUpsertWebhook,
    ClientStatus,
    TimeEntryWebhook,
    WebhookAck,
)
from burnboard.services.middleware import request_id_of
from burnboard.services.storage import Storage

router = APIRouter(prefix="/api/webhooks", tags=["Webhooks"])
logger = logging.getLogger("burnboard-webhooks")


@router.post("/n8n", response_model=WebhookAck)
async def receive_burn_snapshot(
    payload: TimeEntryWebhook,
    request: Request,
    storage: Storage = Depends(get_storage),
):
    """
    Upsert the daily burn snapshot for a client.

    An unknown Accelo id creates a placeholder ACTIVE client named
    ``Client <id>`` whose retainer is seeded from the pushed target (0 when
    absent); the snapshot is then stored against that client.
    """
    request_id = request_id_of(request)
    data = payload.data
    target_cents = data.target_spend_to_date_cents or 0

    client = await storage.get_client_by_external_id(data.client_id)
    if not client:
        client = await storage.upsert_client(
            accelo_id=data.client_id,
            name=f"Client {data.client_id}",
            status=ClientStatus.ACTIVE,
            start_date=data.date,
            monthly_retainer_amount_cents=target_cents,
        )
        logger.info(
            f"Created placeholder client for Accelo id {data.client_id}",
            extra={"client_id": client.id, "request_id": request_id},
        )

    await storage.upsert_burn_snapshot(
        client_id=client.id,
        snapshot_date=data.date,
        spend_to_date_cents=data.spend_to_date_cents,
        hours_to_date=data.hours_to_date,
        target_spend_to_date_cents=target_cents,
    )
    logger.info(
        "Burn snapshot saved",
        extra={
            "client_id": client.id,
            "snapshot_date": data.date.isoformat(),
            "request_id": request_id,
        },
    )
    return WebhookAck(success=True, saved=True)


@router.post("/clients", response_model=ClientsUpsertAck)
async def receive_clients(
    payload: ClientsUpsertWebhook,
    request: Request,
    storage: Storage = Depends(get_storage),
):
    """Upsert every client in the push by Accelo id; returns how many were processed."""
    created = 0
    for item in payload.clients:
        await storage.upsert_client(accelo_id=item.id, name=item.name, status=item.status)
        created += 1
    logger.info(
        f"Clients webhook processed {created} clients",
        extra={"request_id": request_id_of(request)},
    )
    return ClientsUpsertAck(success=True, created=created)
