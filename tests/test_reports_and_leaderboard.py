import asyncio

import pytest

from core.use_cases.report_use_cases import ReportNotFoundError, list_reports, set_report_status, submit_report
from core.use_cases.token_use_cases import award_for_report, leaderboard


def test_submit_report_awards_tokens(report_repo, token_repo):
    submitted = asyncio.run(
        submit_report(report_repo, token_repo, user_id=1, title="Beach cleanup", waste_size="small",
                      location="North pier")
    )
    assert submitted.rewarded is True
    assert submitted.tokens_awarded == 5
    assert submitted.report.status == "pending"
    assert token_repo.get_account(1).balance == 5


@pytest.mark.parametrize("title, size", [("", "small"), ("Pile", "huge"), ("Pile", "")])
def test_submit_report_validates(report_repo, token_repo, count_rows, title, size):
    with pytest.raises(ValueError):
        asyncio.run(submit_report(report_repo, token_repo, user_id=1, title=title, waste_size=size))
    assert count_rows("waste_reports") == 0
    assert count_rows("token_transactions") == 0


def test_status_changes(report_repo, token_repo):
    submitted = asyncio.run(submit_report(report_repo, token_repo, user_id=1, title="Tyres", waste_size="large"))
    updated = asyncio.run(set_report_status(report_repo, submitted.report.id, "Approved"))
    assert updated.status == "approved"
    assert [r.id for r in asyncio.run(list_reports(report_repo, status="approved"))] == [submitted.report.id]
    assert asyncio.run(list_reports(report_repo, status="pending")) == []


def test_status_errors(report_repo):
    with pytest.raises(ReportNotFoundError):
        asyncio.run(set_report_status(report_repo, 123, "approved"))
    with pytest.raises(ValueError):
        asyncio.run(set_report_status(report_repo, 123, "archived"))


def test_leaderboard_orders_by_tokens(user_repo, token_repo, report_repo):
    alice = user_repo.create_user("alice@example.com", "hash", full_name="Alice")
    bob = user_repo.create_user("bob@example.com", "hash")
    asyncio.run(award_for_report(token_repo, alice.id, "small", "a"))
    for _ in range(2):
        asyncio.run(award_for_report(token_repo, bob.id, "large", "b"))
    report = report_repo.create_report(alice.id, "a", None, None, "small")
    report_repo.update_status(report.id, "approved")

    entries = asyncio.run(leaderboard(token_repo, user_repo, report_repo))

    assert [(e.rank, e.user_id, e.tokens) for e in entries] == [(1, bob.id, 60), (2, alice.id, 5)]
    assert entries[0].name == "Anonymous User"
    assert entries[0].level == 2
    assert entries[1].name == "Alice"
    assert entries[1].reports_approved == 1
