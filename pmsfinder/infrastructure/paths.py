# pmsfinder/infrastructure/paths.py
from pathlib import Path
import os


class Paths:
    def __init__(self, data_dir: Path = None):
        try:
            self.root = Path(__file__).resolve().parents[2]
        except NameError:
            self.root = Path(os.getcwd()).resolve()

        self.data_dir = Path(data_dir) if data_dir else self.root / "data"
        self.config_path = self.root / "config.yaml"

        self.data_dir.mkdir(parents=True, exist_ok=True)


def init_paths(data_dir: Path = None) -> Paths:
    return Paths(data_dir)
