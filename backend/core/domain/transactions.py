"""
core.domain.transactions — Helpers for safe state transitions.

Wraps ``transaction.atomic`` and ``select_for_update`` into reusable
patterns so that the case workflow (and any future stateful model) reads
the row under a lock before changing its status.

Usage::

    from core.domain.transactions import atomic_transition

    case = atomic_transition(
        instance=case,
        target_status=CaseStatus.IN_PROGRESS,
        allowed_sources={CaseStatus.PENDING},
    )
"""

from __future__ import annotations

from typing import Any, Iterable, TypeVar

from django.db import models, transaction

from core.domain.exceptions import InvalidTransition, NotFound

M = TypeVar("M", bound=models.Model)


def atomic_transition(
    *,
    instance: M,
    status_field: str = "status",
    target_status: str,
    allowed_sources: Iterable[str] | None = None,
    changes: dict[str, Any] | None = None,
) -> M:
    """
    Atomically transition a model instance from one status to another.

    Steps performed inside ``transaction.atomic()``:
        1. Re-fetch the instance with ``select_for_update()``.
        2. Verify the current status is among ``allowed_sources``
           (when given); raise ``InvalidTransition`` otherwise.
        3. Set ``status_field`` to ``target_status``, apply ``changes``
           and save only the touched fields.

    Args:
        instance:        The model instance to transition.
        status_field:    Name of the status field.  Defaults to ``"status"``.
        target_status:   The desired new value.
        allowed_sources: Status values from which the move is permitted.
                         ``None`` accepts any current value.
        changes:         Extra ``{field: value}`` pairs written in the
                         same save (e.g. ``assigned_to``, ``completed_at``).

    Returns:
        The caller's instance, refreshed from the database.

    Raises:
        NotFound:          The row no longer exists.
        InvalidTransition: The current status is not in ``allowed_sources``.
    """
    model_class = type(instance)

    with transaction.atomic():
        locked = lock_for_update(model_class, instance.pk)
        current = getattr(locked, status_field)

        if allowed_sources is not None:
            allowed_sources = list(allowed_sources)
            if current not in allowed_sources:
                raise InvalidTransition(
                    current=str(current),
                    target=str(target_status),
                    reason=(
                        "Allowed source states: "
                        f"{', '.join(str(s) for s in allowed_sources)}."
                    ),
                )

        setattr(locked, status_field, target_status)
        update_fields = {status_field, "updated_at"}
        for field, value in (changes or {}).items():
            setattr(locked, field, value)
            update_fields.add(field)

        locked.save(update_fields=list(update_fields))

    instance.refresh_from_db()
    return instance


def lock_for_update(model_class: type[M], pk: Any) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Must be called inside an ``atomic()`` block.

    Raises:
        NotFound: If no row with that PK exists.
    """
    try:
        return model_class.objects.select_for_update().get(pk=pk)
    except model_class.DoesNotExist:
        raise NotFound(f"{model_class.__name__} with pk={pk} does not exist.")
