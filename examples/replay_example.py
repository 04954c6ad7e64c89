"""Replay a recorded event stream and diagnose the test that hung."""

from pathlib import Path

from testlens import TestReporter, iter_event_lines


# 1. Create a session (console output, default settings)
session = TestReporter()

# 2. Feed it a stream that stops while a test is still running
events_file = Path(__file__).parent / "events" / "hanging.jsonl"
with events_file.open(encoding="utf-8") as fh:
    exit_code = session.run(iter_event_lines(fh))

# 3. Report what never finished (this is what the shutdown hook does on Ctrl+C)
session.report_incomplete()

# 4. Query the tracker directly
for record in session.analyzer.snapshot_incomplete():
    print(" > ".join(session.store.full_name(record)))

print(f"exit code: {exit_code}")
