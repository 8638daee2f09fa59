"""
Ledger enumerations.

Defines treasury directions, audit actions and audited entity types.
"""

import enum


class TreasuryDirection(str, enum.Enum):
    """
    Direction of a collective-fund movement.

    Values:
        RECEIVE: Counterparty paid into the fund
        SEND: The fund paid the counterparty
    """
    RECEIVE = "receive"
    SEND = "send"


class AuditAction(str, enum.Enum):
    """Standardized audit action tags."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"
    PARTICIPANTS_UPDATE = "participants_update"


class AuditEntity(str, enum.Enum):
    """Ledger entity types that are audited."""
    EXPENSE = "expense"
    DUES_GOAL = "dues_goal"
    TREASURY_TRANSACTION = "treasury_transaction"


class ChangeTable(str, enum.Enum):
    """Table names used as change-notification topics."""
    TRIPS = "trips"
    PARTICIPANTS = "participants"
    EXPENSES = "expenses"
    EXPENSE_IMAGES = "expense_images"
    TREASURY_TRANSACTIONS = "treasury_transactions"
    DUES = "dues"
    PARTICIPANT_ACCOUNTS = "participant_accounts"
    TRIP_TREASURY_ACCOUNTS = "trip_treasury_accounts"
