"""
Expense Service (Ledger Store).

Create/edit/soft-delete/restore/hard-delete expenses, settlement marking and
receipt images. Every committed expense mutation writes its audit entry in the
same transaction.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripledger.app.core.config import settings
from tripledger.app.core.context import SessionContext
from tripledger.app.core.exceptions import NotFoundError, ValidationError
from tripledger.app.core.guards import access_policy
from tripledger.app.models.enums import AuditAction, AuditEntity, ChangeTable, TreasuryDirection
from tripledger.app.models.expense import Expense, ExpenseImage, ExpenseParticipant
from tripledger.app.models.mixins import generate_id, utcnow
from tripledger.app.models.treasury import TreasuryTransaction
from tripledger.app.schemas.expense import ExpenseCreate, ExpenseSettle, ExpenseUpdate
from tripledger.app.services import audit
from tripledger.app.services.blob_store import LocalBlobStore, image_path
from tripledger.app.services.change_notifier import change_notifier
from tripledger.app.services.ledger_common import (
    ACTIVE, ANY, DELETED, check_revision, commit, get_scoped, get_trip_participants,
)

logger = logging.getLogger("tripledger.expenses")

ENTITY = "expense"


async def validate_expense(
    db: AsyncSession,
    trip_id: str,
    payer_id: Optional[str],
    amount: int,
    participant_ids: Iterable[str],
    expense_id: Optional[str] = None,
) -> List[str]:
    """
    Check expense invariants against the trip's participants.

    Returns:
        The de-duplicated, sorted share set

    Raises:
        ValidationError naming the violated rule
    """
    if amount is None or amount <= 0:
        raise ValidationError("amount must be positive", entity=ENTITY, entity_id=expense_id)

    share_ids = sorted(set(participant_ids or []))
    if not share_ids:
        raise ValidationError("expense has zero participants", entity=ENTITY, entity_id=expense_id)

    trip_participant_ids = {p.id for p in await get_trip_participants(db, trip_id)}
    if payer_id is None or payer_id not in trip_participant_ids:
        raise ValidationError("payer does not belong to the trip", entity=ENTITY, entity_id=expense_id)
    if not set(share_ids) <= trip_participant_ids:
        raise ValidationError(
            "expense participant does not belong to the trip", entity=ENTITY, entity_id=expense_id
        )

    return share_ids


class ExpenseService:

    @staticmethod
    async def create(db: AsyncSession, ctx: SessionContext, data: ExpenseCreate) -> Expense:
        """
        Record a new expense (treasurer only).

        Flow:
        1. Capability check
        2. Invariant validation
        3. Expense + share links + audit entry in one commit
        4. Change notification
        """
        access_policy.enforce_treasurer(ctx, "add expenses", ENTITY)
        share_ids = await validate_expense(db, ctx.trip_id, data.payer_id, data.amount, data.participant_ids)

        expense = Expense(
            id=generate_id(),
            trip_id=ctx.trip_id,
            payer_id=data.payer_id,
            amount=data.amount,
            description=data.description,
            created_by=ctx.actor_id,
            is_settled=False,
            is_deleted=False,
            revision=1,
            participant_links=[ExpenseParticipant(participant_id=pid) for pid in share_ids],
            images=[],
        )
        db.add(expense)
        await db.flush()

        await audit.record(
            db, ctx, AuditEntity.EXPENSE, expense.id, AuditAction.CREATE,
            before=None, after=audit.entity_snapshot(AuditEntity.EXPENSE, expense)
        )
        await commit(db)

        logger.info("Expense %s created in trip %s (amount=%s)", expense.id, ctx.trip_id, expense.amount)
        await change_notifier.publish(ctx.trip_id, ChangeTable.EXPENSES)
        return expense

    @staticmethod
    async def list(db: AsyncSession, ctx: SessionContext, include_deleted: bool = False) -> List[Expense]:
        access_policy.enforce_member(ctx)

        query = select(Expense).where(Expense.trip_id == ctx.trip_id)
        if not include_deleted:
            query = query.where(Expense.is_deleted == False)
        query = query.order_by(desc(Expense.created_at), Expense.id)

        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def list_deleted(db: AsyncSession, ctx: SessionContext) -> List[Expense]:
        access_policy.enforce_member(ctx)
        result = await db.execute(
            select(Expense)
            .where(Expense.trip_id == ctx.trip_id, Expense.is_deleted == True)
            .order_by(desc(Expense.deleted_at), Expense.id)
        )
        return result.scalars().all()

    @staticmethod
    async def get(db: AsyncSession, ctx: SessionContext, expense_id: str, include_deleted: bool = False) -> Expense:
        access_policy.enforce_member(ctx)
        return await get_scoped(db, Expense, ENTITY, ctx.trip_id, expense_id, ANY if include_deleted else ACTIVE)

    @staticmethod
    async def update(db: AsyncSession, ctx: SessionContext, expense_id: str, data: ExpenseUpdate) -> Expense:
        """
        Edit an expense (treasurer or creator).

        Field edits are audited as ``update`` with a diff of changed fields; a
        share-set change is audited separately as ``participants_update`` with
        the full before/after sets.
        """
        expense = await get_scoped(db, Expense, ENTITY, ctx.trip_id, expense_id, ACTIVE)
        access_policy.enforce_expense_owner_or_treasurer(ctx, expense, "edit this expense")
        check_revision(expense, ENTITY, data.expected_revision)

        changes = data.model_dump(exclude_unset=True, exclude={"participant_ids", "expected_revision"})
        payer_id = changes.get("payer_id", expense.payer_id)
        amount = changes.get("amount", expense.amount)
        old_share_ids = list(expense.participant_ids)
        requested_share_ids = data.participant_ids if data.participant_ids is not None else old_share_ids

        new_share_ids = await validate_expense(db, ctx.trip_id, payer_id, amount, requested_share_ids, expense.id)

        fields = ("payer_id", "amount", "description")
        before = audit.snapshot(expense, fields)
        for field, value in changes.items():
            setattr(expense, field, value)
        field_before, field_after = audit.diff(before, audit.snapshot(expense, fields))

        participants_changed = new_share_ids != old_share_ids
        if participants_changed:
            removed = set(old_share_ids) - set(new_share_ids)
            for link in [link for link in expense.participant_links if link.participant_id in removed]:
                expense.participant_links.remove(link)
            for pid in sorted(set(new_share_ids) - set(old_share_ids)):
                expense.participant_links.append(ExpenseParticipant(expense_id=expense.id, participant_id=pid))

        if not field_after and not participants_changed:
            return expense

        expense.revision += 1
        if field_after:
            await audit.record(
                db, ctx, AuditEntity.EXPENSE, expense.id, AuditAction.UPDATE,
                before=field_before, after=field_after
            )
        if participants_changed:
            await audit.record(
                db, ctx, AuditEntity.EXPENSE, expense.id, AuditAction.PARTICIPANTS_UPDATE,
                before={"participant_ids": old_share_ids}, after={"participant_ids": new_share_ids}
            )
        await commit(db)

        logger.info("Expense %s updated (revision %s)", expense.id, expense.revision)
        await change_notifier.publish(ctx.trip_id, ChangeTable.EXPENSES)
        return expense

    @staticmethod
    async def delete(db: AsyncSession, ctx: SessionContext, expense_id: str) -> Expense:
        """Soft-delete an expense (treasurer or creator)."""
        expense = await get_scoped(db, Expense, ENTITY, ctx.trip_id, expense_id, ACTIVE)
        access_policy.enforce_expense_owner_or_treasurer(ctx, expense, "delete this expense")

        expense.mark_deleted(ctx.actor_id)
        await audit.record(
            db, ctx, AuditEntity.EXPENSE, expense.id, AuditAction.DELETE,
            before={"is_deleted": False}, after={"is_deleted": True}
        )
        await commit(db)

        logger.info("Expense %s soft-deleted in trip %s", expense.id, ctx.trip_id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.EXPENSES)
        return expense

    @staticmethod
    async def restore(db: AsyncSession, ctx: SessionContext, expense_id: str) -> Expense:
        """Restore a soft-deleted expense (treasurer only)."""
        access_policy.enforce_treasurer(ctx, "restore expenses", ENTITY, expense_id)
        expense = await get_scoped(db, Expense, ENTITY, ctx.trip_id, expense_id, DELETED)

        if expense.payer_id is None or not expense.participant_links:
            raise ValidationError(
                "expense references a removed participant", entity=ENTITY, entity_id=expense.id
            )

        expense.mark_restored()
        await audit.record(
            db, ctx, AuditEntity.EXPENSE, expense.id, AuditAction.RESTORE,
            before={"is_deleted": True}, after={"is_deleted": False}
        )
        await commit(db)

        logger.info("Expense %s restored in trip %s", expense.id, ctx.trip_id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.EXPENSES)
        return expense

    @staticmethod
    async def hard_delete(db: AsyncSession, ctx: SessionContext, expense_id: str) -> dict:
        """
        Permanently remove an expense (admin only).

        Share links and image rows go with it; image blobs are orphaned and
        payouts keep their row with the expense link cleared.
        """
        access_policy.enforce_admin(ctx, "permanently delete expenses", ENTITY, expense_id)
        expense = await get_scoped(db, Expense, ENTITY, ctx.trip_id, expense_id, ANY)

        await audit.record(
            db, ctx, AuditEntity.EXPENSE, expense.id, AuditAction.DELETE,
            before=audit.entity_snapshot(AuditEntity.EXPENSE, expense), after={"hard_deleted": True}
        )
        result = await db.execute(
            select(TreasuryTransaction).where(TreasuryTransaction.expense_id == expense.id)
        )
        payouts = result.scalars().all()
        for tx in payouts:
            await audit.clear_reference(db, ctx, AuditEntity.TREASURY_TRANSACTION, tx, "expense_id")
        await db.delete(expense)
        await commit(db)

        logger.info("Expense %s hard-deleted from trip %s", expense_id, ctx.trip_id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.EXPENSES)
        if payouts:
            await change_notifier.publish(ctx.trip_id, ChangeTable.TREASURY_TRANSACTIONS)
        return {"status": "deleted", "expense_id": expense_id}

    @staticmethod
    async def set_settled(db: AsyncSession, ctx: SessionContext, expense_id: str, data: ExpenseSettle) -> Expense:
        """
        Mark or clear the settlement flag (treasurer only).

        Settling may record a ``send`` payout to the payer linked to the expense.
        Clearing the flag soft-deletes the active payouts linked to it.
        """
        access_policy.enforce_treasurer(ctx, "settle expenses", ENTITY, expense_id)
        expense = await get_scoped(db, Expense, ENTITY, ctx.trip_id, expense_id, ACTIVE)

        if expense.is_settled == data.is_settled:
            raise ValidationError(
                "expense is already settled" if data.is_settled else "expense is not settled",
                entity=ENTITY,
                entity_id=expense.id
            )

        payout = None
        if data.is_settled:
            expense.is_settled = True
            expense.settled_at = utcnow()
            expense.settled_by = ctx.actor_id
            if data.create_payout:
                payout = TreasuryTransaction(
                    id=generate_id(),
                    trip_id=ctx.trip_id,
                    treasurer_id=ctx.actor_id,
                    direction=TreasuryDirection.SEND,
                    counterparty_id=expense.payer_id,
                    amount=expense.amount,
                    memo=f"Settlement - {expense.description or 'expense'}",
                    expense_id=expense.id,
                    is_deleted=False,
                    revision=1,
                )
                db.add(payout)
                await db.flush()
                await audit.record(
                    db, ctx, AuditEntity.TREASURY_TRANSACTION, payout.id, AuditAction.CREATE,
                    before=None, after=audit.entity_snapshot(AuditEntity.TREASURY_TRANSACTION, payout)
                )
        else:
            expense.is_settled = False
            expense.settled_at = None
            expense.settled_by = None
            result = await db.execute(
                select(TreasuryTransaction).where(
                    TreasuryTransaction.expense_id == expense.id,
                    TreasuryTransaction.is_deleted == False
                )
            )
            for tx in result.scalars().all():
                tx.mark_deleted(ctx.actor_id)
                await audit.record(
                    db, ctx, AuditEntity.TREASURY_TRANSACTION, tx.id, AuditAction.DELETE,
                    before={"is_deleted": False}, after={"is_deleted": True}
                )

        expense.revision += 1
        await audit.record(
            db, ctx, AuditEntity.EXPENSE, expense.id, AuditAction.UPDATE,
            before={"is_settled": not data.is_settled}, after={"is_settled": data.is_settled}
        )
        await commit(db)

        logger.info("Expense %s settled=%s (payout=%s)", expense.id, data.is_settled, payout.id if payout else None)
        await change_notifier.publish(ctx.trip_id, ChangeTable.EXPENSES)
        await change_notifier.publish(ctx.trip_id, ChangeTable.TREASURY_TRANSACTIONS)
        return expense

    @staticmethod
    async def add_image(
        db: AsyncSession,
        ctx: SessionContext,
        store: LocalBlobStore,
        expense_id: str,
        content: bytes,
        mime_type: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> ExpenseImage:
        """Attach a receipt image (treasurer or creator)."""
        expense = await get_scoped(db, Expense, ENTITY, ctx.trip_id, expense_id, ACTIVE)
        access_policy.enforce_expense_owner_or_treasurer(ctx, expense, "attach receipts to this expense")

        if not mime_type or not mime_type.startswith("image/"):
            raise ValidationError("receipt must be an image", entity=ENTITY, entity_id=expense.id)
        if not content:
            raise ValidationError("receipt image is empty", entity=ENTITY, entity_id=expense.id)
        if len(expense.images) >= settings.max_images_per_expense:
            raise ValidationError(
                f"an expense holds at most {settings.max_images_per_expense} images",
                entity=ENTITY,
                entity_id=expense.id
            )

        image_id = generate_id()
        path = image_path(ctx.trip_id, expense.id, image_id, mime_type)
        old_image_ids = [img.id for img in expense.images]
        await store.put(path, content, mime_type)

        try:
            image = ExpenseImage(
                id=image_id,
                expense_id=expense.id,
                path=path,
                mime_type=mime_type,
                size=len(content),
                width=width,
                height=height,
                created_at=utcnow(),
            )
            expense.images.append(image)
            expense.revision += 1
            await audit.record(
                db, ctx, AuditEntity.EXPENSE, expense.id, AuditAction.UPDATE,
                before={"image_ids": old_image_ids}, after={"image_ids": old_image_ids + [image.id]}
            )
            await commit(db)
        except Exception:
            # Row never committed, drop the orphaned blob
            await store.delete(path)
            raise

        logger.info("Image %s attached to expense %s", image.id, expense.id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.EXPENSE_IMAGES)
        return image

    @staticmethod
    async def remove_image(
        db: AsyncSession,
        ctx: SessionContext,
        store: LocalBlobStore,
        expense_id: str,
        image_id: str,
    ) -> dict:
        """Detach a receipt image and delete its blob (treasurer or creator)."""
        expense = await get_scoped(db, Expense, ENTITY, ctx.trip_id, expense_id, ACTIVE)
        access_policy.enforce_expense_owner_or_treasurer(ctx, expense, "remove receipts from this expense")

        image = next((img for img in expense.images if img.id == image_id), None)
        if image is None:
            raise NotFoundError("expense_image", image_id)

        path = image.path
        old_image_ids = [img.id for img in expense.images]
        expense.images.remove(image)
        expense.revision += 1
        await audit.record(
            db, ctx, AuditEntity.EXPENSE, expense.id, AuditAction.UPDATE,
            before={"image_ids": old_image_ids},
            after={"image_ids": [iid for iid in old_image_ids if iid != image_id]}
        )
        await commit(db)
        await store.delete(path)

        logger.info("Image %s removed from expense %s", image_id, expense.id)
        await change_notifier.publish(ctx.trip_id, ChangeTable.EXPENSE_IMAGES)
        return {"status": "deleted", "image_id": image_id}

    @staticmethod
    async def list_images(
        db: AsyncSession,
        ctx: SessionContext,
        store: LocalBlobStore,
        expense_id: str,
    ) -> List[dict]:
        """Receipt images of an expense with time-limited download URLs."""
        access_policy.enforce_member(ctx)
        expense = await get_scoped(db, Expense, ENTITY, ctx.trip_id, expense_id, ANY)

        return [
            {
                "id": image.id,
                "expense_id": image.expense_id,
                "path": image.path,
                "url": store.signed_url(image.path),
                "mime_type": image.mime_type,
                "size": image.size,
                "width": image.width,
                "height": image.height,
                "created_at": image.created_at,
            }
            for image in expense.images
        ]
