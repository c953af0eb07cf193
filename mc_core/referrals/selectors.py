from __future__ import annotations

from django.db.models import Q, QuerySet

from mc_core.applications.selectors import ProviderDirectory
from mc_core.common.errors import AuthorizationError
from mc_core.common.transitions import load_or_404
from mc_core.iam.models import User, UserRole
from mc_core.referrals.models import Referral, ReferralDecline, ReferralStatus


class ReferralSelector:
    @staticmethod
    def base_qs() -> QuerySet[Referral]:
        return Referral.objects.select_related(
            "patient", "referring_provider", "specialist", "consultation"
        ).order_by("-created_at")

    @staticmethod
    def for_gp(*, gp_id) -> QuerySet[Referral]:
        return ReferralSelector.base_qs().filter(referring_provider_id=gp_id)

    @staticmethod
    def for_specialist(*, specialist: User) -> QuerySet[Referral]:
        """
        Assigned referrals plus the open pool this specialist could still accept:
        pending, specialization contained in theirs, not already declined by them.
        """
        own_spec = ProviderDirectory.specialization_of(specialist).lower()
        declined = ReferralDecline.objects.filter(specialist_id=specialist.id).values_list("referral_id", flat=True)

        open_ids = []
        if own_spec:
            pending = Referral.objects.filter(status=ReferralStatus.PENDING).exclude(id__in=declined)
            open_ids = [
                rid for rid, spec in pending.values_list("id", "specialization")
                if spec.strip() and spec.strip().lower() in own_spec
            ]

        return ReferralSelector.base_qs().filter(Q(specialist_id=specialist.id) | Q(id__in=open_ids))

    @staticmethod
    def visible_to(*, user: User) -> QuerySet[Referral]:
        if user.is_admin:
            return ReferralSelector.base_qs()
        if user.role == UserRole.GP:
            return ReferralSelector.for_gp(gp_id=user.id)
        if user.role == UserRole.SPECIALIST:
            return ReferralSelector.for_specialist(specialist=user)
        return ReferralSelector.base_qs().filter(patient_id=user.id)

    @staticmethod
    def get_for_user(*, referral_id, user: User) -> Referral:
        r = load_or_404(
            Referral,
            pk=referral_id,
            label="Referral",
            select_related=("patient", "referring_provider", "specialist", "consultation"),
        )
        if user.is_admin or user.id in (r.patient_id, r.referring_provider_id, r.specialist_id):
            return r
        if (
            r.status == ReferralStatus.PENDING
            and user.role == UserRole.SPECIALIST
            and ProviderDirectory.covers_specialization(user, r.specialization)
        ):
            return r
        raise AuthorizationError("You do not have access to this referral.")
