import datetime as dt

from recall.analytics import SessionTally, build_review_dashboard
from recall.evaluation import Verdict

from conftest import NOW


def test_session_tally_counts_and_accuracy():
    tally = SessionTally()

    tally.record_answer("basic", Verdict(correct=True), response_time_ms=1000)
    tally.record_answer("basic", Verdict(correct=False), response_time_ms=3000)
    tally.record_answer("ordered", Verdict(correct=True))
    tally.record_skip()
    tally.record_rating(3)
    tally.record_rating(1)

    summary = tally.summary()
    assert summary["presented"] == 4
    assert summary["correct"] == 2
    assert summary["incorrect"] == 1
    assert summary["skipped"] == 1
    assert summary["accuracy"] == 2 / 3
    assert summary["average_response_time_ms"] == 2000
    assert summary["ratings"] == {"good": 1, "again": 1}
    assert summary["by_card_type"] == {
        "basic": {"correct": 1, "incorrect": 1},
        "ordered": {"correct": 1, "incorrect": 0},
    }


def test_empty_tally_has_no_accuracy():
    tally = SessionTally()
    tally.record_skip()

    assert tally.accuracy is None
    assert tally.presented == 1


def test_dashboard(service):
    service.submit_review("u1", "basic-1", 3, now=NOW)            # due in 6 days
    service.submit_review("u1", "cloze-1", 1, now=NOW)            # due tomorrow
    service.submit_review("u1", "tf-1", 3, now=NOW - dt.timedelta(days=10))  # overdue

    dashboard = build_review_dashboard(service.store, "u1", course_id="bio", now=NOW, days=7)

    assert dashboard.total_cards == 5
    assert dashboard.status_counts == {"new": 3, "learning": 2, "mastered": 0}
    assert (dashboard.times_reviewed, dashboard.times_correct) == (3, 2)
    assert dashboard.accuracy == 2 / 3
    # two never-seen cards plus the overdue one
    assert dashboard.due_now == 3
    assert dashboard.upcoming_workload.tolist() == [3, 1, 0, 0, 0, 0, 1]
    # tf-1 was last reviewed ten days ago
    assert dashboard.completed_today == 2
    assert dashboard.suspended_cards == 0
    assert int(dashboard.reviews_daily.sum()) == 3

    as_dict = dashboard.to_dict()
    assert as_dict["upcoming_workload"][0] == {"date": "2024-03-01", "count": 3}


def test_dashboard_for_user_without_reviews(service):
    dashboard = build_review_dashboard(service.store, "nobody", now=NOW)

    assert dashboard.total_cards == 9
    assert dashboard.accuracy is None
    assert dashboard.due_now == 9
    assert dashboard.reviews_daily.empty


def test_dashboard_leaves_suspended_cards_out_of_due_counts(service):
    service.submit_review("u1", "basic-1", 3, now=NOW)
    service.set_suspended("u1", "basic-1", True, now=NOW)
    service.set_suspended("u1", "tf-1", True, now=NOW)

    dashboard = build_review_dashboard(service.store, "u1", course_id="bio", now=NOW, days=7)

    assert dashboard.total_cards == 5
    assert dashboard.suspended_cards == 2
    assert dashboard.due_now == 3
    assert dashboard.upcoming_workload.tolist() == [3, 0, 0, 0, 0, 0, 0]
    assert dashboard.completed_today == 1
    assert dashboard.to_dict()["suspended_cards"] == 2


def test_completed_today_starts_at_utc_midnight(service):
    service.submit_review("u1", "basic-1", 3, now=NOW.replace(hour=0, minute=0))
    service.submit_review("u1", "cloze-1", 3, now=NOW.replace(hour=0, minute=0) - dt.timedelta(seconds=1))

    dashboard = build_review_dashboard(service.store, "u1", now=NOW)

    assert dashboard.completed_today == 1
