# tests/test_results.py
from contact_scout.parser.results import Extracted, Failed, merge_successful, run_extractor
from contact_scout.parser.structured_data import find_email_values, iter_email_values


def _boom(_page):
    raise RuntimeError("selector exploded")


def test_run_extractor_tags_success_and_failure():
    ok = run_extractor("text", lambda page: ["a@startup.io"], None)
    bad = run_extractor("broken", _boom, None)
    assert isinstance(ok, Extracted) and ok.ok and ok.value == ["a@startup.io"]
    assert isinstance(bad, Failed) and not bad.ok
    assert isinstance(bad.error, RuntimeError)


def test_failing_extractor_does_not_blank_siblings():
    results = [
        run_extractor("first", lambda: ["a@startup.io", "b@startup.io"]),
        run_extractor("broken", _boom, object()),
        run_extractor("second", lambda: ["b@startup.io", "c@startup.io"]),
    ]
    assert merge_successful(results) == ["a@startup.io", "b@startup.io", "c@startup.io"]


def test_merge_successful_accepts_empty_values():
    assert merge_successful([run_extractor("none", lambda: None), run_extractor("empty", list)]) == []


def test_structured_data_collects_email_keys_at_any_level():
    data = {
        "@graph": [
            {"@type": "Organization", "email": "org@startup.io"},
            {"author": {"authorEmail": "writer@startup.io", "name": "Ada"}},
        ],
        "contactPoint": [{"Email": "desk@startup.io"}, {"telephone": "+1"}],
    }
    assert sorted(iter_email_values(data)) == ["desk@startup.io", "org@startup.io", "writer@startup.io"]


def test_structured_data_depth_cap():
    data = {"email": "deep@startup.io"}
    for _ in range(40):
        data = {"child": data}
    assert find_email_values(data) == []
    assert find_email_values(data, max_depth=64) == ["deep@startup.io"]


def test_find_email_values_skips_non_addresses():
    assert find_email_values({"email": "n/a", "contactEmail": "ops@startup.io"}) == ["ops@startup.io"]


def test_scalars_and_lists_at_root():
    assert find_email_values("ops@startup.io") == []
    assert find_email_values([[{"email": "a@startup.io"}]]) == ["a@startup.io"]
