"""
Contract & balance ledger rules
-------------------------------
Pure arithmetic, no database access. The services apply these to the
stored patient/record state.

Two balance figures exist for an orthodontic patient and they are NOT the
same number:

- ``current_balance`` on the patient row is the ledger state. It moves only
  through payments (``balance_after_payment``), contract edits
  (``balance_after_contract_update``) and cycle starts.
- ``cycle_balance`` is a display summary for the active cycle that also
  includes per-visit additional charges.

When additional charges exist the two diverge. Callers show them as
separate figures.
"""

from core.config import Config
from core.exceptions import ValidationError
from models.orthodontic import CHARGE_FIELDS


def _amount(value) -> float:
    return float(value or 0)


def balance_after_payment(current_balance, amount_paid) -> float:
    """remaining = max(0, current_balance - amount_paid)"""
    if _amount(amount_paid) < 0:
        raise ValidationError("Amount paid cannot be negative")
    return max(0.0, _amount(current_balance) - _amount(amount_paid))


def balance_after_contract_update(old_price, old_balance, new_price=None) -> float:
    """Re-derive the balance when the contract price changes mid-cycle.

    Whatever was already paid against the old price is credited against
    the new one. Without a new price the balance is left as it was; with
    no previous price nothing has been paid against a contract yet.
    """
    if new_price is None:
        return _amount(old_balance)
    if old_price is None:
        return max(0.0, _amount(new_price))
    paid_so_far = _amount(old_price) - _amount(old_balance)
    return max(0.0, _amount(new_price) - paid_so_far)


def validate_contract_update(contract_price=None, contract_months=None):
    if contract_price is None and contract_months is None:
        raise ValidationError("Provide a contract price or a contract duration to update")
    if contract_price is not None and contract_price < 0:
        raise ValidationError("Contract price must be positive")
    if contract_months is not None and contract_months < 1:
        raise ValidationError("Contract months must be at least 1")


def additional_charges_total(counters: dict, rates: dict = None) -> float:
    """Sum of count * unit rate over the additional-charge counters."""
    rates = Config.CHARGE_RATES if rates is None else rates
    total = 0.0
    for field in CHARGE_FIELDS:
        count = int(counters.get(field) or 0)
        if count < 0:
            raise ValidationError(f"{field} count cannot be negative")
        total += count * float(rates.get(field, 0))
    return total


def cycle_balance(contract_price, records) -> dict:
    """Summary for the active cycle.

    ``records`` are the cycle's treatment records (objects or dicts with
    ``additional_charges_total`` and ``amount_paid``).
    """
    def _get(record, key):
        if isinstance(record, dict):
            return record.get(key)
        return getattr(record, key, None)

    charges = sum(_amount(_get(r, "additional_charges_total")) for r in records)
    paid = sum(_amount(_get(r, "amount_paid")) for r in records)
    raw_total = _amount(contract_price) + charges - paid
    return {
        "contract_price": _amount(contract_price),
        "additional_charges": charges,
        "total_paid": paid,
        "total_balance": max(0.0, raw_total),
    }


def is_cycle_complete(max_appt_no, contract_months) -> bool:
    """Appointment #1 is the consultation; the contract counts from #2."""
    if max_appt_no is None or contract_months is None:
        return False
    return max_appt_no >= contract_months + 1
