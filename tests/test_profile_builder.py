# tests/test_profile_builder.py
from datetime import datetime, timedelta, timezone

from smart_form_predictor.core.profile_builder import CrossSessionProfileBuilder, most_frequent


def ms(hour, tz=timezone.utc):
    return datetime(2024, 5, 6, hour, 15, tzinfo=tz).timestamp() * 1000


SESSIONS = [
    {"firstName": "Ada", "lastName": "Lovelace", "city": "London", "state": "LDN",
     "company": "Analytical", "title": "Engineer", "timestamp": ms(9), "deviceType": "desktop"},
    {"firstName": "Ada", "lastName": "Lovelace", "city": "London", "state": "LDN",
     "timestamp": ms(9), "deviceType": "mobile"},
    {"firstName": "Ada", "lastName": "King", "city": "Paris",
     "company": "Analytical", "title": "Engineer", "timestamp": ms(20)},
]


def test_aggregate():
    p = CrossSessionProfileBuilder().aggregate(SESSIONS)
    assert p.preferred_names == ["Ada Lovelace", "Ada King"]
    assert p.preferred_location == "London-LDN"
    assert p.preferred_work_info == "Analytical-Engineer"
    assert p.preferred_hour == 9
    # desktop, mobile, unknown all seen once: first seen wins
    assert p.preferred_device == "desktop"


def test_city_without_state_still_counts():
    p = CrossSessionProfileBuilder().aggregate([{"city": "Paris"}])
    assert p.preferred_location == "Paris-"


def test_location_counted_without_address():
    sessions = [{"city": "Paris", "state": "IDF"}, {"city": "Lyon", "address": "1 rue X"}, {"city": "Paris", "state": "IDF"}]
    assert CrossSessionProfileBuilder().aggregate(sessions).preferred_location == "Paris-IDF"


def test_hour_uses_injected_timezone():
    plus_two = timezone(timedelta(hours=2))
    p = CrossSessionProfileBuilder(tz=plus_two).aggregate([{"timestamp": ms(9)}])
    assert p.preferred_hour == 11


def test_missing_timestamp_uses_clock():
    b = CrossSessionProfileBuilder(clock=lambda: datetime(2024, 1, 1, 17, 0))
    assert b.aggregate([{"firstName": "x"}]).preferred_hour == 17


def test_aggregate_replaces_profile():
    b = CrossSessionProfileBuilder()
    b.aggregate(SESSIONS)
    p = b.aggregate([{"firstName": "Grace", "lastName": "Hopper", "timestamp": ms(8)}])
    assert p.preferred_names == ["Grace Hopper"]
    assert p.preferred_location is None
    assert b.get_user_profile() is p


def test_update_merges_non_empty_fields():
    b = CrossSessionProfileBuilder()
    b.aggregate(SESSIONS)
    p = b.update_user_profile([{"city": "Rome", "state": "RM", "timestamp": ms(13)}])
    assert p.preferred_location == "Rome-RM"
    assert p.preferred_work_info == "Analytical-Engineer"
    assert p.preferred_names == ["Ada Lovelace", "Ada King"]


def test_most_frequent_tie_break():
    assert most_frequent({"a": 2, "b": 2, "c": 1}) == "a"
    assert most_frequent({}) is None


def test_empty_profile():
    assert CrossSessionProfileBuilder().get_user_profile().is_empty()
