"""Drive the tracker directly and rank the slowest tests."""

from testlens.tracking import RunAnalyzer, TestKey, TestRecordStore, TestState


store = TestRecordStore()
analyzer = RunAnalyzer(store)

durations = {"parse": 10, "index": 500, "search": 1000, "render": 50, "export": 2000}
for name, duration in durations.items():
    key = TestKey("test/pipeline.test.js", 0, name)
    store.start_test(key)
    store.complete_test(key, TestState.PASSED, duration_ms=duration)

for record in analyzer.get_slow_tests(3):
    print(f"{record.duration_ms:>6.0f}ms  {record.name}")

stats = analyzer.get_stats()
print(f"{stats.passed} passed, {stats.failed} failed, {stats.incomplete} incomplete")
