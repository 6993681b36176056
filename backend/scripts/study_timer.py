"""Terminal study timer that logs finished sessions to the API.

The timer state lives in a JSON snapshot file, so each invocation picks
up where the last one left off, even across reboots.

Usage:
    python scripts/study_timer.py start|pause|status|reset|watch
    python scripts/study_timer.py subject "Networking"
    python scripts/study_timer.py stop [--api http://127.0.0.1:8000]
"""
import sys
import argparse
import pathlib
from typing import Optional
# Ensure `backend/` is on sys.path so `study_tracker` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
import httpx
from study_tracker.client import StudyTrackerClient
from study_tracker.config import settings
from study_tracker.timer import (
    JsonFileSnapshotStore, StudyTimer, TimerValidationError, format_clock, iter_display,
)


def _describe(timer: StudyTimer) -> str:
    state = timer.state
    line = f'[{timer.status}] {format_clock(timer.elapsed())}'
    if state.start_label:
        line += f'  started {state.start_label}'
    if state.subject:
        line += f'  subject: {state.subject}'
    return line


def run(command: str, value: Optional[str], timer: StudyTimer, client: Optional[StudyTrackerClient] = None) -> int:
    """Execute one timer command; returns the process exit code."""
    if command == 'start':
        timer.start()
    elif command == 'pause':
        timer.pause()
    elif command == 'reset':
        timer.reset()
    elif command == 'subject':
        timer.set_subject(value)
    elif command == 'topic':
        timer.set_topic(value)
    elif command == 'notes':
        timer.set_notes(value)
    elif command == 'watch':
        try:
            for display in iter_display(timer):
                print(f'\r{display}', end='', flush=True)
        except KeyboardInterrupt:
            pass
        print()
    elif command == 'stop':
        client = client or StudyTrackerClient()
        try:
            record = timer.stop(on_finalize=client.save_finished_session)
        except TimerValidationError as e:
            print(f'Not saved: {e}')
            return 1
        except httpx.HTTPError as e:
            print(f'Not saved, timer kept: {e}')
            return 2
        print(f'Saved {record.duration_minutes} min session ({record.start_time}-{record.end_time})')
        return 0
    print(_describe(timer))
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('command', choices=['status', 'start', 'pause', 'stop', 'reset', 'watch', 'subject', 'topic', 'notes'])
    parser.add_argument('value', nargs='?', help='Value for subject/topic/notes')
    parser.add_argument('--state-file', type=pathlib.Path, default=settings.TIMER_STATE_PATH.with_name('cli_timer_state.json'))
    parser.add_argument('--api', default=settings.API_BASE_URL, help='Base URL of the study tracker API')
    args = parser.parse_args()
    timer = StudyTimer(JsonFileSnapshotStore(args.state_file))
    client = StudyTrackerClient(base_url=args.api) if args.command == 'stop' else None
    try:
        code = run(args.command, args.value, timer, client)
    finally:
        if client:
            client.close()
    sys.exit(code)
