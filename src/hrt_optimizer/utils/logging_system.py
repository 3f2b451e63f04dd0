"""
Logging setup and per-iteration run history for schedule optimization.

Provides console/file logging handlers and a structured record of each
optimization iteration that can be exported as JSON Lines.
"""

import logging
import json
from typing import Dict, Any, List, Optional, Union
from dataclasses import dataclass, asdict
from pathlib import Path

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'


def setup_logger(name: str = 'hrt_optimizer',
                 level: int = logging.INFO,
                 log_file: Optional[Union[str, Path]] = None) -> logging.Logger:
    """Setup logging with a console handler and an optional detailed file handler.

    Args:
        name: Logger name (the package logger by default, so all modules inherit it)
        level: Console log level
        log_file: Optional path for a DEBUG-level log file

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Clear existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


@dataclass(frozen=True)
class IterationRecord:
    """State of an optimization run after one iteration"""
    iteration: int
    score: float
    best_score: float
    improvement: float
    n_doses: int
    n_injections: int
    granularity_multiplier: float
    refined: bool = False


class RunHistory:
    """Accumulates iteration records for one optimization run."""

    def __init__(self):
        self.records: List[IterationRecord] = []

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def append(self, record: IterationRecord) -> None:
        self.records.append(record)

    @property
    def scores(self) -> List[float]:
        return [r.score for r in self.records]

    @property
    def refinements(self) -> List[int]:
        """Iterations after which the granularity multiplier was halved."""
        return [r.iteration for r in self.records if r.refined]

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [asdict(r) for r in self.records]

    def save_jsonl(self, path: Union[str, Path]) -> None:
        """Write one JSON object per iteration."""
        with open(path, 'w') as f:
            for entry in self.to_dicts():
                f.write(json.dumps(entry) + '\n')
