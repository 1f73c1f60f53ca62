"""Persistence primitives: code allocation, atomic seat claim, session link, expiry."""

from datetime import timedelta

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from app.common.exceptions import Forbidden, Gone, Internal, ValidationFailed
from app.matches import repository
from app.matches.models import MATCH_CODE_ALPHABET, MATCH_CODE_LENGTH, Match, MatchParticipant

pytestmark = pytest.mark.django_db


def _new_match(user, session, **kwargs) -> Match:
    return repository.create_match(creator=user, session=session, prompt_id=session.prompt_id, **kwargs)


def test_generated_codes_use_unambiguous_alphabet() -> None:
    for _ in range(50):
        code = repository.generate_match_code()
        assert len(code) == MATCH_CODE_LENGTH
        assert set(code) <= set(MATCH_CODE_ALPHABET)
    assert not {"0", "O", "1", "I", "L"} & set(MATCH_CODE_ALPHABET)


def test_create_match_sets_fixed_expiry_and_creator_row(creator, creator_session) -> None:
    now = timezone.now()
    match = _new_match(creator, creator_session, now=now)

    assert match.status == Match.STATUS_PENDING
    assert match.created_at == now
    assert match.expires_at - match.created_at == timedelta(hours=24)
    rows = list(MatchParticipant.objects.filter(match=match))
    assert [(r.role, r.user_id, r.session_id) for r in rows] == [
        (MatchParticipant.ROLE_CREATOR, creator.id, creator_session.id)
    ]


def test_create_match_retries_on_code_collision(monkeypatch, creator, creator_session, make_session) -> None:
    first = _new_match(creator, creator_session)
    codes = iter([first.match_code, "NEWCODE2"])
    monkeypatch.setattr(repository, "generate_match_code", lambda: next(codes))

    second = _new_match(creator, make_session(creator))

    assert second.match_code == "NEWCODE2"
    assert Match.objects.count() == 2


def test_create_match_gives_up_after_max_retries(monkeypatch, settings, creator, creator_session, make_session) -> None:
    settings.MATCH_CODE_MAX_RETRIES = 3
    taken = _new_match(creator, creator_session).match_code
    calls = []

    def _always_taken():
        calls.append(1)
        return taken

    monkeypatch.setattr(repository, "generate_match_code", _always_taken)

    with pytest.raises(Internal) as exc:
        _new_match(creator, make_session(creator))

    assert exc.value.code == "MATCH_CODE_EXHAUSTED"
    assert len(calls) == 3
    assert Match.objects.count() == 1


def test_role_is_unique_per_match(creator, creator_session, opponent) -> None:
    match = _new_match(creator, creator_session)
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            MatchParticipant.objects.create(match=match, user=opponent, role=MatchParticipant.ROLE_CREATOR)


def test_insert_opponent_first_claim_wins(creator, creator_session, opponent, make_user) -> None:
    match = _new_match(creator, creator_session)
    rival = make_user()

    assert repository.insert_opponent(match, opponent) == repository.ADMITTED
    assert repository.insert_opponent(match, rival) == repository.SEAT_TAKEN
    assert repository.insert_opponent(match, opponent) == repository.SEAT_TAKEN

    opponents = MatchParticipant.objects.filter(match=match, role=MatchParticipant.ROLE_OPPONENT)
    assert [p.user_id for p in opponents] == [opponent.id]


def test_insert_opponent_refuses_closed_match(creator, creator_session, opponent, age_match) -> None:
    match = age_match(_new_match(creator, creator_session), hours=25)

    assert repository.insert_opponent(match, opponent) == repository.CLOSED
    assert not MatchParticipant.objects.filter(match=match, role=MatchParticipant.ROLE_OPPONENT).exists()


def test_expire_if_overdue_flips_only_once(creator, creator_session, age_match) -> None:
    match = age_match(_new_match(creator, creator_session), hours=25)

    assert repository.expire_if_overdue(match.id) is True
    assert repository.expire_if_overdue(match.id) is False
    match.refresh_from_db()
    assert match.status == Match.STATUS_EXPIRED


def test_expire_if_overdue_leaves_fresh_match_alone(creator, creator_session) -> None:
    match = _new_match(creator, creator_session)

    assert repository.expire_if_overdue(match.id) is False
    match.refresh_from_db()
    assert match.status == Match.STATUS_PENDING


def test_expire_overdue_matches_counts_only_stale_pending(creator, make_session, age_match) -> None:
    stale = age_match(_new_match(creator, make_session(creator)), hours=30)
    age_match(_new_match(creator, make_session(creator)), hours=2)
    already = age_match(_new_match(creator, make_session(creator)), hours=40)
    Match.objects.filter(id=already.id).update(status=Match.STATUS_COMPLETED)

    assert repository.expire_overdue_matches() == 1
    stale.refresh_from_db()
    assert stale.status == Match.STATUS_EXPIRED


def test_link_session_completes_when_both_sides_linked(
    creator, creator_session, opponent, opponent_session
) -> None:
    match = _new_match(creator, creator_session)
    repository.insert_opponent(match, opponent)

    first = repository.link_session(match.id, creator, creator_session)
    assert first.completed is False

    second = repository.link_session(match.id, opponent, opponent_session)
    assert second.completed is True
    assert second.completed_now is True
    match.refresh_from_db()
    assert match.status == Match.STATUS_COMPLETED
    assert match.completed_at is not None


def test_link_session_on_completed_match(
    creator, creator_session, opponent, opponent_session, make_session
) -> None:
    match = _new_match(creator, creator_session)
    repository.insert_opponent(match, opponent)
    repository.link_session(match.id, opponent, opponent_session)

    again = repository.link_session(match.id, creator, creator_session)
    assert again.completed is True
    assert again.completed_now is False

    with pytest.raises(Gone) as exc:
        repository.link_session(match.id, opponent, make_session(opponent))
    assert exc.value.code == "MATCH_COMPLETED"


def test_link_session_rejects_outsider(creator, creator_session, make_user, make_session) -> None:
    match = _new_match(creator, creator_session)
    outsider = make_user()

    with pytest.raises(Forbidden) as exc:
        repository.link_session(match.id, outsider, make_session(outsider))
    assert exc.value.code == "NOT_A_PARTICIPANT"


def test_link_session_rejects_second_session_for_same_side(creator, creator_session, make_session) -> None:
    match = _new_match(creator, creator_session)

    with pytest.raises(ValidationFailed) as exc:
        repository.link_session(match.id, creator, make_session(creator))
    assert exc.value.code == "ALREADY_LINKED"


def test_link_session_expires_overdue_match_under_lock(
    creator, creator_session, opponent, opponent_session, age_match
) -> None:
    match = _new_match(creator, creator_session)
    repository.insert_opponent(match, opponent)
    age_match(match, hours=25)

    with pytest.raises(Gone) as exc:
        repository.link_session(match.id, opponent, opponent_session)

    assert exc.value.code == "MATCH_EXPIRED"
    match.refresh_from_db()
    assert match.status == Match.STATUS_EXPIRED
    assert MatchParticipant.objects.get(match=match, user=opponent).session_id is None


def test_find_pending_match_prefers_most_recent(creator, creator_session) -> None:
    older = _new_match(creator, creator_session, now=timezone.now() - timedelta(hours=2))
    newer = _new_match(creator, creator_session)

    assert repository.find_pending_match_for_session(creator_session) == newer
    Match.objects.filter(id=newer.id).update(status=Match.STATUS_EXPIRED)
    assert repository.find_pending_match_for_session(creator_session) == older


def test_get_match_by_code_is_case_insensitive(creator, creator_session) -> None:
    match = _new_match(creator, creator_session)

    assert repository.get_match_by_code(match.match_code.lower()) == match
    assert repository.get_match_by_code("") is None
    assert repository.get_match_by_code("ZZZZZZZZ") is None
