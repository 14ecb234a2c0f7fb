# core/tasks.py
from celery import shared_task


@shared_task
def copy_trade_for_relation(trade_id, relation_id):
    """Create one follower's copy of a newly opened trade"""
    from copy_trading.services.copy_service import ReplicationEngine

    copied = ReplicationEngine().copy_for_relation(trade_id, relation_id)
    return str(copied.id) if copied else None


@shared_task
def settle_copied_trade(copied_trade_id):
    """Settle one follower's copy of a closed trade"""
    from copy_trading.services.copy_service import ReplicationEngine

    settled = ReplicationEngine().settle_copied_trade(copied_trade_id)
    return str(settled.pnl) if settled else None


@shared_task
def retry_failed_settlements():
    """Retry fan-out steps recorded as failed"""
    from copy_trading.services.copy_service import ReplicationEngine

    return ReplicationEngine().retry_failed_settlements()


@shared_task
def repair_unsettled_copies():
    """Settle copies left open after their original trade closed"""
    from copy_trading.services.copy_service import ReplicationEngine

    return ReplicationEngine().repair_unsettled_copies()


@shared_task
def repair_missed_fanouts():
    """Create copies for trades whose open fan-out was never dispatched"""
    from copy_trading.services.copy_service import ReplicationEngine

    return ReplicationEngine().repair_missed_fanouts()
