import pytest
from sqlalchemy import select

from app.core.approval_chains import DEFAULT_APPROVAL_CHAINS
from app.core.exceptions import (
    AuthorizationError, InvalidTransitionError, LinkageError, NotFoundError, StaleStateError,
    ValidationError,
)
from app.models.alerts.notification import Notification
from app.models.approval.approval_settings import ApprovalSettings
from app.models.shared.enums import (
    ApprovalStepStatus, NotificationType, RequestModule, RequestStatus, RequestType
)
from app.schemas.request.request_schema import RequestCreate
from app.services.request.request_service import RequestService
from app.services.request.transition_engine import DEFAULT_CANCEL_REASON, TransitionEngine
from tests.factories import account_verification, bulk_upload, loan_disbursement, savings_withdrawal


def step_statuses(request):
    return [step.status for step in sorted(request.approval_steps, key=lambda s: s.level)]


@pytest.mark.asyncio
class TestRequestCreation:
    """Filing a request materializes its approval chain"""

    async def test_steps_match_configured_chain(self, session, seeded):
        service = RequestService(session)
        request = await service.create_request(savings_withdrawal(seeded), seeded.users["member"])

        chain = DEFAULT_APPROVAL_CHAINS[RequestType.SAVINGS_WITHDRAWAL]
        levels = [step.level for step in request.approval_steps]
        assert levels == list(range(1, len(chain) + 1))
        assert [step.approver_role for step in request.approval_steps] == [c.approver_role for c in chain]
        assert all(step.status == ApprovalStepStatus.PENDING for step in request.approval_steps)
        assert request.status == RequestStatus.PENDING
        assert request.next_approval_level == 1
        assert request.version == 1

    async def test_zero_level_type_completes_immediately(self, session, seeded):
        request = await RequestService(session).create_request(bulk_upload(), seeded.users["admin"])

        assert request.status == RequestStatus.COMPLETED
        assert request.approval_steps == []
        assert request.next_approval_level is None
        assert request.completed_at is not None

    async def test_disabled_type_skips_approval_and_applies_effect(self, session, seeded):
        session.add(ApprovalSettings(request_type=RequestType.ACCOUNT_VERIFICATION, is_enabled=False))
        await session.commit()

        request = await RequestService(session).create_request(
            account_verification(seeded), seeded.users["member"]
        )

        assert request.status == RequestStatus.COMPLETED
        assert request.approval_steps == []

    async def test_invalid_content_is_rejected(self, session, seeded):
        with pytest.raises(ValidationError):
            await RequestService(session).create_request(
                savings_withdrawal(seeded, amount=0), seeded.users["member"]
            )

    async def test_missing_linkage_is_rejected(self, session, seeded):
        data = RequestCreate(
            type=RequestType.SAVINGS_WITHDRAWAL,
            module=RequestModule.SAVINGS,
            content={"amount": 100},
            biodata_id=seeded.biodata_id,
        )
        with pytest.raises(ValidationError):
            await RequestService(session).create_request(data, seeded.users["member"])

    async def test_dangling_linkage_is_rejected(self, session, seeded):
        with pytest.raises(LinkageError) as exc_info:
            await RequestService(session).create_request(
                loan_disbursement(seeded, loan_id=999), seeded.users["member"]
            )
        assert "Loan 999" in exc_info.value.detail

    async def test_initiator_and_first_approvers_are_notified(self, session, seeded):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )

        result = await session.execute(select(Notification).where(Notification.request_id == request.id))
        notifications = result.scalars().all()
        by_user = {(n.user_id, n.type) for n in notifications}

        assert (seeded.users["member"], NotificationType.REQUEST_UPDATE) in by_user
        assert (seeded.users["admin"], NotificationType.APPROVAL_REQUIRED) in by_user
        assert (seeded.users["admin2"], NotificationType.APPROVAL_REQUIRED) in by_user
        # Expired assignments are not approvers
        assert all(n.user_id != seeded.users["expired_admin"] for n in notifications)


@pytest.mark.asyncio
class TestApprovalChain:
    """Two-level chain: ADMIN then TREASURER, with processing after approval"""

    async def test_full_approval_then_completion(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        engine = TransitionEngine(session)

        request = await engine.approve_step(request.id, actors["admin"], "Documents verified")
        assert request.status == RequestStatus.REVIEWED
        assert request.next_approval_level == 2
        assert step_statuses(request) == [ApprovalStepStatus.APPROVED, ApprovalStepStatus.PENDING]
        assert request.approval_steps[0].approver_id == seeded.users["admin"]
        assert request.approval_steps[0].approved_at is not None

        request = await engine.approve_step(request.id, actors["treasurer"])
        assert request.status == RequestStatus.APPROVED
        assert request.next_approval_level is None
        assert ApprovalStepStatus.PENDING not in step_statuses(request)

        request = await engine.complete_request(request.id, "Funds transferred", actors["treasurer"])
        assert request.status == RequestStatus.COMPLETED
        assert request.completed_at is not None
        assert request.notes == "Funds transferred"

    async def test_final_approval_completes_types_without_processing(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            account_verification(seeded), seeded.users["member"]
        )

        request = await TransitionEngine(session).approve_step(request.id, actors["admin"])

        assert request.status == RequestStatus.COMPLETED
        assert request.next_approval_level is None
        assert request.completed_at is not None
        assert step_statuses(request) == [ApprovalStepStatus.APPROVED]

    async def test_each_transition_bumps_version(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        engine = TransitionEngine(session)

        request = await engine.mark_in_review(request.id, actors["admin"])
        assert request.version == 2
        request = await engine.approve_step(request.id, actors["admin"])
        assert request.version == 3

    async def test_three_level_chain_needs_chairman(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            savings_withdrawal(seeded), seeded.users["member"]
        )
        request_id = request.id
        engine = TransitionEngine(session)

        await engine.approve_step(request_id, actors["admin"])
        await engine.approve_step(request_id, actors["treasurer"])

        with pytest.raises(AuthorizationError):
            await engine.approve_step(request_id, actors["treasurer"])

        request = await engine.approve_step(request_id, actors["chairman"])
        assert request.status == RequestStatus.APPROVED

    async def test_super_admin_can_act_on_any_level(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        engine = TransitionEngine(session)

        await engine.approve_step(request.id, actors["superadmin"])
        request = await engine.approve_step(request.id, actors["superadmin"])

        assert request.status == RequestStatus.APPROVED

    async def test_next_approvers_notified_after_level_clears(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        request_id = request.id
        await TransitionEngine(session).approve_step(request_id, actors["admin"])

        result = await session.execute(
            select(Notification).where(
                Notification.request_id == request_id,
                Notification.user_id == seeded.users["treasurer"],
                Notification.type == NotificationType.APPROVAL_REQUIRED,
            )
        )
        assert result.scalars().first() is not None


@pytest.mark.asyncio
class TestAuthorizationChecks:
    async def test_level_one_actor_cannot_approve_level_two(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        request_id = request.id
        engine = TransitionEngine(session)
        await engine.approve_step(request_id, actors["admin"])

        with pytest.raises(AuthorizationError) as exc_info:
            await engine.approve_step(request_id, actors["admin2"])
        assert "Insufficient approval level" in exc_info.value.detail

        request = await RequestService(session).get_request(request_id)
        assert request.next_approval_level == 2
        assert request.status == RequestStatus.REVIEWED

    async def test_expired_role_cannot_approve(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        with pytest.raises(AuthorizationError) as exc_info:
            await TransitionEngine(session).approve_step(request.id, actors["expired_admin"])
        assert "expired" in exc_info.value.detail

    async def test_member_cannot_approve_own_request(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        with pytest.raises(AuthorizationError):
            await TransitionEngine(session).approve_step(request.id, actors["member"])

    async def test_complete_requires_process_permission(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        request_id = request.id
        engine = TransitionEngine(session)
        await engine.approve_step(request_id, actors["admin"])
        await engine.approve_step(request_id, actors["treasurer"])

        with pytest.raises(AuthorizationError):
            await engine.complete_request(request_id, actor=actors["admin"])

        # Domain logic may complete without an actor
        request = await engine.complete_request(request_id)
        assert request.status == RequestStatus.COMPLETED


@pytest.mark.asyncio
class TestReview:
    async def test_mark_in_review_claims_step(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )

        request = await TransitionEngine(session).mark_in_review(request.id, actors["admin"], "Looking")

        assert request.status == RequestStatus.IN_REVIEW
        assert request.assignee_id == seeded.users["admin"]
        step = request.current_step()
        assert step.status == ApprovalStepStatus.IN_PROGRESS
        assert step.approver_id == seeded.users["admin"]
        assert step.notes == "Looking"

    async def test_repeat_review_by_same_actor_is_noop(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        engine = TransitionEngine(session)

        first = await engine.mark_in_review(request.id, actors["admin"])
        version = first.version
        again = await engine.mark_in_review(request.id, actors["admin"])

        assert again.status == RequestStatus.IN_REVIEW
        assert again.version == version

    async def test_review_claimed_by_other_actor_is_stale(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        engine = TransitionEngine(session)
        await engine.mark_in_review(request.id, actors["admin"])

        with pytest.raises(StaleStateError):
            await engine.mark_in_review(request.id, actors["admin2"])

    async def test_review_of_second_level_keeps_reviewed_status(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        engine = TransitionEngine(session)
        await engine.approve_step(request.id, actors["admin"])

        request = await engine.mark_in_review(request.id, actors["treasurer"])

        assert request.status == RequestStatus.REVIEWED
        assert request.current_step().status == ApprovalStepStatus.IN_PROGRESS

    async def test_at_most_one_step_in_progress(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            savings_withdrawal(seeded), seeded.users["member"]
        )
        engine = TransitionEngine(session)

        request = await engine.mark_in_review(request.id, actors["admin"])
        request = await engine.approve_step(request.id, actors["admin"])
        request = await engine.mark_in_review(request.id, actors["treasurer"])

        in_progress = [s for s in request.approval_steps if s.status == ApprovalStepStatus.IN_PROGRESS]
        assert len(in_progress) == 1
        assert in_progress[0].level == request.next_approval_level


@pytest.mark.asyncio
class TestRejection:
    async def test_reject_skips_later_steps(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        request_id = request.id
        engine = TransitionEngine(session)

        request = await engine.reject_step(request_id, actors["admin"], "insufficient documentation")

        assert request.status == RequestStatus.REJECTED
        assert step_statuses(request) == [ApprovalStepStatus.REJECTED, ApprovalStepStatus.SKIPPED]
        assert request.approval_steps[0].notes == "insufficient documentation"

        with pytest.raises(InvalidTransitionError):
            await engine.approve_step(request_id, actors["treasurer"], level=2)
        with pytest.raises(InvalidTransitionError):
            await engine.mark_in_review(request_id, actors["admin"])

    async def test_blank_reason_is_rejected(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        request_id = request.id
        engine = TransitionEngine(session)

        for reason in (None, "", "   "):
            with pytest.raises(ValidationError):
                await engine.reject_step(request_id, actors["admin"], reason)

        request = await RequestService(session).get_request(request_id)
        assert request.status == RequestStatus.PENDING

    async def test_initiator_notified_of_rejection(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        request_id = request.id
        await TransitionEngine(session).reject_step(request_id, actors["admin"], "Missing guarantor")

        result = await session.execute(
            select(Notification).where(
                Notification.request_id == request_id,
                Notification.title == "Request Rejected",
            )
        )
        notification = result.scalars().one()
        assert notification.user_id == seeded.users["member"]
        assert "Missing guarantor" in notification.message


@pytest.mark.asyncio
class TestCompletionAndCancellation:
    async def test_complete_requires_approved_status(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        request_id = request.id
        engine = TransitionEngine(session)

        with pytest.raises(InvalidTransitionError):
            await engine.complete_request(request_id, actor=actors["treasurer"])

        await engine.approve_step(request_id, actors["admin"])
        with pytest.raises(InvalidTransitionError):
            await engine.complete_request(request_id, actor=actors["treasurer"])

    async def test_initiator_cancels(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        request_id = request.id
        engine = TransitionEngine(session)
        await engine.approve_step(request_id, actors["admin"])

        request = await engine.cancel_request(request_id, actors["member"])

        assert request.status == RequestStatus.CANCELLED
        assert request.notes == DEFAULT_CANCEL_REASON
        assert step_statuses(request) == [ApprovalStepStatus.APPROVED, ApprovalStepStatus.SKIPPED]

        with pytest.raises(InvalidTransitionError):
            await engine.cancel_request(request_id, actors["member"])

    async def test_other_member_cannot_cancel(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        with pytest.raises(AuthorizationError):
            await TransitionEngine(session).cancel_request(request.id, actors["member2"], "Not mine")

    async def test_administrator_cancels_with_reason(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        request = await TransitionEngine(session).cancel_request(
            request.id, actors["admin"], "  Duplicate submission  "
        )
        assert request.notes == "Duplicate submission"

    async def test_approved_request_cannot_be_cancelled(self, session, seeded, actors):
        request = await RequestService(session).create_request(
            loan_disbursement(seeded), seeded.users["member"]
        )
        request_id = request.id
        engine = TransitionEngine(session)
        await engine.approve_step(request_id, actors["admin"])
        await engine.approve_step(request_id, actors["treasurer"])

        with pytest.raises(InvalidTransitionError):
            await engine.cancel_request(request_id, actors["member"])

    async def test_unknown_request(self, session, seeded, actors):
        with pytest.raises(NotFoundError):
            await TransitionEngine(session).approve_step("missing", actors["admin"])
        with pytest.raises(NotFoundError):
            await RequestService(session).get_request("missing")
