from launcher.deploy import DeployAction, Reconciler, parse_actions, reconcile
from launcher.eventbus import subscribe
from launcher import metrics

DIR = "/deploy"


def _cfg(actions, **extra):
    cfg = {"modlaunch.auto.deploy.action": actions}
    cfg.update(extra)
    return cfg


def test_parse_actions_trims_and_drops_unknown():
    assert parse_actions(" Install , START,bogus,,") == frozenset(
        {DeployAction.INSTALL, DeployAction.START}
    )
    assert parse_actions(None) == frozenset()


def test_no_actions_is_noop(runtime_cls, source_cls):
    rt = runtime_cls()
    src = source_cls({DIR: ["/deploy/a.zip"]})
    report = reconcile({}, rt, DIR, src)
    assert report.actions == frozenset()
    assert rt.calls == []
    assert src.listed == []


def test_install_and_start_in_sorted_order(runtime_cls, source_cls):
    rt = runtime_cls(initial_tier=3)
    src = source_cls({DIR: ["/deploy/b.zip", "/deploy/a.zip"]})
    report = reconcile(_cfg("install,start"), rt, DIR, src)
    assert rt.ops("install") == ["/deploy/a.zip", "/deploy/b.zip"]
    assert rt.ops("start_module") == ["/deploy/a.zip", "/deploy/b.zip"]
    assert report.installed == ["/deploy/a.zip", "/deploy/b.zip"]
    assert rt.tiers == {"/deploy/a.zip": 3, "/deploy/b.zip": 3}
    # every opened stream is closed and its bytes reached the runtime
    assert src.closed == src.opened
    assert rt.streams["/deploy/a.zip"] == b"/deploy/a.zip"


def test_install_pass_before_start_pass(runtime_cls, source_cls):
    rt = runtime_cls()
    src = source_cls({DIR: ["/deploy/a.zip", "/deploy/b.zip"]})
    reconcile(_cfg("install,start"), rt, DIR, src)
    names = [op for op, _ in rt.calls]
    last_install = max(i for i, n in enumerate(names) if n == "install")
    first_start = min(i for i, n in enumerate(names) if n == "start_module")
    assert last_install < first_start


def test_second_run_is_idempotent(runtime_cls, source_cls):
    rt = runtime_cls()
    src = source_cls({DIR: ["/deploy/a.zip", "/deploy/b.zip"]})
    reconcile(_cfg("install,start"), rt, DIR, src)
    rt.calls.clear()
    report = reconcile(_cfg("install,start"), rt, DIR, src)
    assert rt.ops("install") == []
    assert rt.ops("start_module") == []
    assert not report.changed


def test_directory_override_and_tier(runtime_cls, source_cls):
    rt = runtime_cls()
    src = source_cls({"/other": ["/other/x.zip"]})
    cfg = _cfg(
        "install",
        **{
            "modlaunch.auto.deploy.dir": "/other",
            "modlaunch.auto.deploy.tier": "5",
        },
    )
    report = reconcile(cfg, rt, DIR, src)
    assert src.listed == ["/other"]
    assert report.directory == "/other"
    assert rt.tiers == {"/other/x.zip": 5}


def test_malformed_tier_uses_default(runtime_cls, source_cls):
    rt = runtime_cls(initial_tier=2)
    src = source_cls({DIR: ["/deploy/a.zip"]})
    reconcile(_cfg("install", **{"modlaunch.auto.deploy.tier": "high"}), rt, DIR, src)
    assert rt.tiers == {"/deploy/a.zip": 2}


def test_update_for_known_location(runtime_cls, source_cls):
    rt = runtime_cls()
    rt.preinstall("/deploy/a.zip", active=True)
    src = source_cls({DIR: ["/deploy/a.zip"]})
    report = reconcile(_cfg("install,update,start"), rt, DIR, src)
    assert rt.ops("install") == []
    assert rt.ops("update") == ["/deploy/a.zip"]
    assert report.updated == ["/deploy/a.zip"]
    # already active: not started again
    assert rt.ops("start_module") == []


def test_uninstall_spares_bootstrap_module(runtime_cls, source_cls):
    rt = runtime_cls()
    rt.preinstall("/deploy/gone.zip")
    src = source_cls({DIR: ["/deploy/a.zip"]})
    report = reconcile(_cfg("install,uninstall"), rt, DIR, src)
    assert report.uninstalled == ["/deploy/gone.zip"]
    assert rt.ops("uninstall") == ["/deploy/gone.zip"]
    locations = {h.location for h in rt.installed_modules()}
    assert runtime_cls.BOOTSTRAP_LOCATION in locations


def test_fragments_are_never_started(runtime_cls, source_cls):
    rt = runtime_cls(fragments={"/deploy/frag.zip"})
    src = source_cls({DIR: ["/deploy/frag.zip", "/deploy/host.zip"]})
    reconcile(_cfg("install,start"), rt, DIR, src)
    assert rt.ops("start_module") == ["/deploy/host.zip"]
    assert "/deploy/frag.zip" not in rt.tiers


def test_partial_failures_do_not_abort_batch(runtime_cls, source_cls, install_error):
    rt = runtime_cls()
    rt.fail_on[("install", "/deploy/b.zip")] = install_error("/deploy/b.zip")
    src = source_cls(
        {DIR: ["/deploy/a.zip", "/deploy/b.zip", "/deploy/c.zip", "/deploy/d.zip"]},
        unreadable={"/deploy/c.zip"},
    )
    failed = []
    subscribe("ModuleOperationFailed", failed.append)
    report = Reconciler(src).reconcile(_cfg("install,start"), rt, DIR)
    assert report.installed == ["/deploy/a.zip", "/deploy/d.zip"]
    assert rt.ops("start_module") == ["/deploy/a.zip", "/deploy/d.zip"]
    assert [(op, loc) for op, loc, _ in report.failures] == [
        ("install", "/deploy/b.zip"),
        ("install", "/deploy/c.zip"),
    ]
    assert {f["error_type"] for f in failed} == {
        "module-install-failed",
        "module-open-failed",
    }
    # the stream opened for the rejected install was still closed
    assert "/deploy/b.zip" in src.closed
    assert metrics.counter(
        "module_operation_errors_total",
        {"op": "install", "error_type": "module-open-failed"},
    ) == 1


def test_start_failure_logged_and_skipped(runtime_cls, source_cls):
    rt = runtime_cls()
    rt.fail_on[("start_module", "/deploy/a.zip")] = RuntimeError("boom")
    src = source_cls({DIR: ["/deploy/a.zip", "/deploy/b.zip"]})
    report = reconcile(_cfg("install,start"), rt, DIR, src)
    assert report.started == ["/deploy/b.zip"]
    assert report.failures[0][0] == "start"


def test_deploy_completed_event_and_metrics(runtime_cls, source_cls):
    rt = runtime_cls()
    src = source_cls({DIR: ["/deploy/a.zip"]})
    done = []
    subscribe("DeployCompleted", done.append)
    reconcile(_cfg("install,start"), rt, DIR, src)
    assert done[0]["installed"] == 1 and done[0]["started"] == 1
    assert done[0]["actions"] == ["install", "start"]
    assert metrics.counter("module_operations_total", {"op": "install"}) == 1
    assert metrics.counter("module_operations_total", {"op": "start"}) == 1


def test_one_unreadable_of_three_reported_once(runtime_cls, source_cls):
    rt = runtime_cls()
    src = source_cls(
        {DIR: ["/deploy/a.zip", "/deploy/b.zip", "/deploy/c.zip"]},
        unreadable={"/deploy/b.zip"},
    )
    failed = []
    subscribe("ModuleOperationFailed", failed.append)
    report = reconcile(_cfg("install,start"), rt, DIR, src)
    assert rt.ops("start_module") == ["/deploy/a.zip", "/deploy/c.zip"]
    assert [f["location"] for f in failed] == ["/deploy/b.zip"]
    assert len(report.failures) == 1
