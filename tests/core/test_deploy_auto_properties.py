import logging

from launcher.deploy import install_from_properties, process, tokenize_locations


def test_tokenize_quotes_and_spaces():
    assert tokenize_locations('"loc one" loc2 "loc three"') == [
        "loc one",
        "loc2",
        "loc three",
    ]
    assert tokenize_locations("  a   b  ") == ["a", "b"]
    assert tokenize_locations("") == []
    assert tokenize_locations("   ") == []


def test_tokenize_quoted_section_inside_token():
    assert tokenize_locations('file:"my dir"/x.zip next') == [
        "file:my dir/x.zip",
        "next",
    ]


def test_install_then_start_two_passes(runtime_cls):
    rt = runtime_cls(initial_tier=1)
    cfg = {
        "modlaunch.auto.start": "s1 s2",
        "modlaunch.auto.install": "i1",
    }
    report = install_from_properties(cfg, rt)
    names = [op for op, _ in rt.calls]
    first_start = names.index("start_module")
    # all three installed before any start
    assert set(rt.ops("install")[:3]) == {"s1", "s2", "i1"}
    assert "install" in names[:first_start]
    assert rt.ops("start_module") == ["s1", "s2"]
    assert sorted(report.installed) == ["i1", "s1", "s2"]
    assert report.started == ["s1", "s2"]


def test_tier_suffix_and_default(runtime_cls):
    rt = runtime_cls(initial_tier=1)
    cfg = {
        "modlaunch.auto.install.3": "a b",
        "MODLAUNCH.AUTO.START.7": "c",
        "modlaunch.auto.install": "d",
    }
    install_from_properties(cfg, rt)
    assert rt.tiers == {"a": 3, "b": 3, "c": 7, "d": 1}


def test_tier_taken_from_last_key_segment(runtime_cls):
    rt = runtime_cls(initial_tier=1)
    install_from_properties({"modlaunch.auto.install.core.3": "/m/a.zip"}, rt)
    assert rt.ops("install") == ["/m/a.zip"]
    assert rt.tiers == {"/m/a.zip": 3}


def test_malformed_tier_warns_and_uses_default(runtime_cls, caplog):
    caplog.set_level(logging.WARNING, logger="launcher.deploy")
    rt = runtime_cls(initial_tier=4)
    install_from_properties({"modlaunch.auto.install.x": "a"}, rt)
    assert rt.tiers == {"a": 4}
    assert any("Invalid auto property" in r.message for r in caplog.records)


def test_unrelated_prefixes_ignored(runtime_cls):
    rt = runtime_cls()
    install_from_properties(
        {"modlaunch.auto.installer": "nope", "modlaunch.auto.deploy.dir": "x"},
        rt,
    )
    assert rt.calls == []


def test_quoted_locations(runtime_cls):
    rt = runtime_cls()
    install_from_properties({"modlaunch.auto.start": '"loc one" loc2'}, rt)
    assert rt.ops("start_module") == ["loc one", "loc2"]


def test_failures_logged_and_skipped(runtime_cls, install_error):
    rt = runtime_cls()
    rt.fail_on[("install", "bad")] = install_error("bad")
    rt.fail_on[("start_module", "s2")] = RuntimeError("no")
    report = install_from_properties(
        {"modlaunch.auto.start": "bad s1 s2 s3"}, rt
    )
    assert report.started == ["s1", "s3"]
    assert ("install", "bad") in [(op, loc) for op, loc, _ in report.failures]
    assert ("start", "s2") in [(op, loc) for op, loc, _ in report.failures]


def test_already_active_not_restarted(runtime_cls):
    rt = runtime_cls()
    rt.preinstall("s1", active=True)
    report = install_from_properties({"modlaunch.auto.start": "s1"}, rt)
    assert rt.ops("start_module") == []
    assert report.installed == []


def test_process_runs_reconcile_then_auto_properties(runtime_cls, source_cls):
    rt = runtime_cls()
    src = source_cls({"/d": ["/d/a.zip"]})
    cfg = {
        "modlaunch.auto.deploy.action": "install",
        "modlaunch.auto.install": "extra",
    }
    report = process(cfg, rt, "/d", src)
    assert rt.ops("install") == ["/d/a.zip", "extra"]
    assert report.deploy.installed == ["/d/a.zip"]
    assert report.auto_properties.installed == ["extra"]


def test_process_tolerates_missing_configuration(runtime_cls, source_cls):
    rt = runtime_cls()
    report = process(None, rt, "/d", source_cls())
    assert rt.calls == []
    assert report.deploy.actions == frozenset()
