import pytest

from errors import ValidationError
from models import Event, EventType
from query import EventQuery, run_query


def make_event(id, title="Event", description="", event_type=EventType.GENERAL, created_at=None, location=None):
    return Event(
        id=id, title=title, description=description, event_type=event_type, created_by=1,
        created_at=created_at or f"2025-01-0{id}T00:00:00.000000+00:00", location=location,
    )


@pytest.fixture
def events():
    return [
        make_event(1, "FOO bar", created_at="2025-01-01T09:00:00.000000+00:00"),
        make_event(2, "Meetup", "all about foo", EventType.SOCIAL, created_at="2025-01-02T09:00:00.000000+00:00"),
        make_event(3, "Workshop", "hands on", EventType.WORKSHOP, created_at="2025-01-03T09:00:00.000000+00:00"),
    ]


def test_defaults_sort_newest_first(events):
    page = run_query(events, EventQuery())
    assert [e.id for e in page.events] == [3, 2, 1]
    assert (page.total_events, page.current_page, page.total_pages) == (3, 1, 1)

def test_second_page_of_one(events):
    page = run_query(events, EventQuery(limit=1, page=2))
    assert [e.id for e in page.events] == [2]
    assert page.total_pages == 3

def test_out_of_range_page_is_empty(events):
    page = run_query(events, EventQuery(page=5))
    assert page.events == []
    assert page.total_events == 3

def test_search_is_case_insensitive_on_title_or_description(events):
    page = run_query(events, EventQuery(search="foo"))
    assert sorted(e.id for e in page.events) == [1, 2]

def test_empty_search_matches_all(events):
    assert run_query(events, EventQuery(search="")).total_events == 3

def test_type_filter(events):
    page = run_query(events, EventQuery(type=EventType.WORKSHOP))
    assert [e.id for e in page.events] == [3]

def test_search_and_type_combined(events):
    page = run_query(events, EventQuery(search="foo", type="social"))
    assert [e.id for e in page.events] == [2]

def test_no_results_still_one_page():
    page = run_query([], EventQuery())
    assert page.total_pages == 1
    assert page.to_dict() == {"events": [], "totalEvents": 0, "currentPage": 1, "totalPages": 1}

def test_sort_is_stable_both_directions():
    same = "2025-01-01T00:00:00.000000+00:00"
    events = [make_event(i, created_at=same) for i in (1, 2, 3)]
    assert [e.id for e in run_query(events, EventQuery(sort_dir="asc")).events] == [1, 2, 3]
    assert [e.id for e in run_query(events, EventQuery(sort_dir="desc")).events] == [1, 2, 3]

def test_missing_values_sort_as_empty():
    events = [make_event(1, location="Zurich"), make_event(2), make_event(3, location="Amsterdam")]
    page = run_query(events, EventQuery(sort_by="location", sort_dir="asc"))
    assert [e.id for e in page.events] == [2, 3, 1]

def test_numeric_sort_is_natural():
    events = [make_event(2), make_event(10), make_event(1)]
    page = run_query(events, EventQuery(sort_by="id", sort_dir="asc"))
    assert [e.id for e in page.events] == [1, 2, 10]

@pytest.mark.parametrize("query", [
    EventQuery(page=0),
    EventQuery(limit=0),
    EventQuery(sort_by="password"),
    EventQuery(sort_dir="sideways"),
])
def test_invalid_query(events, query):
    with pytest.raises(ValidationError):
        run_query(events, query)

def test_date_sort_compares_instants():
    events = [
        make_event(1, "late", created_at="2025-05-01 10:00"),
        make_event(2, "early", created_at="2025-05-01T09:00:00"),
        make_event(3, "earliest", created_at="2025-05-01T09:30:00+02:00"),
    ]
    page = run_query(events, EventQuery(sort_by="createdAt", sort_dir="asc"))
    assert [e.title for e in page.events] == ["earliest", "early", "late"]

def test_missing_dates_sort_first():
    events = [make_event(1), make_event(2)]
    events[0].start_date = "2025-05-01T09:00:00"
    page = run_query(events, EventQuery(sort_by="startDate", sort_dir="asc"))
    assert [e.id for e in page.events] == [2, 1]

@pytest.mark.parametrize("value", [None, ""])
def test_absent_type_does_not_filter(events, value):
    assert run_query(events, EventQuery(type=value)).total_events == 3

def test_unknown_type_rejected(events):
    with pytest.raises(ValidationError):
        run_query(events, EventQuery(type="party"))
