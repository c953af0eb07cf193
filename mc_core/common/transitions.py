# mc_core/common/transitions.py
"""
Guarded state transitions.

Every claim or status move is a single parameterized UPDATE whose WHERE clause carries
the expected state. The affected-row count decides the winner; callers re-read the row
only to explain a loss (missing row vs. state already moved).
"""
from __future__ import annotations

from typing import Any, Type

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models
from django.utils import timezone

from mc_core.common.errors import NotFoundError


def compare_and_set(model: Type[models.Model], *, pk: Any, guard: dict[str, Any], changes: dict[str, Any],
                    label: str = "Record") -> bool:
    values = dict(changes)
    values.setdefault("updated_at", timezone.now())
    try:
        return model.objects.filter(pk=pk, **guard).update(**values) == 1
    except (DjangoValidationError, ValueError):
        raise NotFoundError(f"{label} not found.")


def load_or_404(model: Type[models.Model], *, pk: Any, label: str = "Record", select_related: tuple = ()):
    qs = model.objects.all()
    if select_related:
        qs = qs.select_related(*select_related)
    try:
        return qs.get(pk=pk)
    except (model.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError(f"{label} not found.")
