"""ResultsWriter: persists Focus Finder session results (CSV + JSON)."""
from __future__ import annotations

import csv
import json
import logging
import os
from datetime import datetime

from config_loader import get_output_dir
from focus_types import ParticipantInfo
from models import SessionSummary

DATA_DIR = get_output_dir()

logger = logging.getLogger('FocusFinder.results')


class ResultsWriter:
    """Writes one row per task attempt to CSV and the session summary to JSON."""

    def __init__(self, output_dir: str | None = None) -> None:
        """Initialize results writer.

        Args:
            output_dir: Custom output directory (defaults to DATA_DIR)
        """
        self.output_dir = output_dir or DATA_DIR

    def save(self, participant_info: ParticipantInfo, summary: SessionSummary) -> tuple[str, str]:
        """Persist results.

        Returns:
            (csv_path, json_path)
        """
        ts = datetime.now().strftime('%Y%m%d_%H%M%S')
        os.makedirs(self.output_dir, exist_ok=True)
        csv_path = os.path.join(self.output_dir, f'focus_results_{ts}.csv')
        pid = participant_info.get('participant_id', '')

        with open(csv_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow([
                'participant_id', 'index', 'task_id', 'target_label',
                'started_at', 'ended_at', 'outcome', 'seconds_used',
            ])
            for index, record in enumerate(summary.task_records, start=1):
                used = record.seconds_used()
                writer.writerow([
                    pid, index, record.task_id, record.target_label,
                    f"{record.started_at:.3f}",
                    f"{record.ended_at:.3f}" if record.ended_at is not None else '',
                    record.outcome.value if record.outcome else '',
                    f"{used:.3f}" if used is not None else '',
                ])

        meta = {
            'participant': participant_info,
            'time_created': datetime.now().isoformat(timespec='seconds'),
            'summary': summary.to_dict(),
            'distractions': [event.to_dict() for event in summary.distraction_log],
        }
        json_path = os.path.join(self.output_dir, f'focus_session_{ts}.json')
        with open(json_path, 'w', encoding='utf-8') as mf:
            json.dump(meta, mf, ensure_ascii=False, indent=2)
        logger.info('Results saved: %s, %s', csv_path, json_path)
        return csv_path, json_path
