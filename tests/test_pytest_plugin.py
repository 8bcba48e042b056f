def test_plugin_fixtures_bind_assertions(pytester):
    pytester.makepyfile(
        """
        class Ping:
            queue = "default"

        def test_scheduled(delayed_queue, scheduler_assertions):
            delayed_queue.enqueue_at(100, Ping, 1)
            scheduler_assertions.assert_queued_at(100, Ping, [1])
            scheduler_assertions.assert_not_queued_at(99, Ping)

        def test_isolated(delayed_queue):
            assert delayed_queue.depth() == 0

        def test_reports_failure(scheduler_assertions):
            scheduler_assertions.assert_queued_at(100, Ping)
        """
    )
    result = pytester.runpytest("-p", "delayed_assertions.pytest_plugin")
    result.assert_outcomes(passed=2, failed=1)
    result.stdout.fnmatch_lines(["*should have been queued in default before 1970-01-01T00:01:40+00:00*"])
