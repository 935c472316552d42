"""
Run configuration: artifact names, log level and synthesis limits.
A JSON file can override any key; unknown keys are kept as given.
"""

import json
from pathlib import Path
from typing import Any, Dict

from zkif.messages import MAX_PRIVATE_VARIABLES

DEFAULT_CONFIG: Dict[str, Any] = {
    "key_filename": "key",        # proving key artifact inside the output directory
    "proof_filename": "proof",    # proof artifact inside the output directory
    "log_level": "WARNING",
    "max_private_variables": MAX_PRIVATE_VARIABLES,
}


def load_config(path: str, base: Dict[str, Any] = None) -> Dict[str, Any]:
    """Overlay the keys of the JSON object in ``path`` on ``base``.

    ``base`` defaults to ``DEFAULT_CONFIG`` and is never modified. Raises
    ``FileNotFoundError`` when ``path`` does not exist.
    """
    config = dict(DEFAULT_CONFIG if base is None else base)
    config_path = Path(path)
    if not config_path.is_file():
        raise FileNotFoundError(f"no config file at {path}")
    overrides = json.loads(config_path.read_text(encoding="utf-8"))
    config.update(overrides)
    return config
