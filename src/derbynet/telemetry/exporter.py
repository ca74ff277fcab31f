"""
Telemetry exporter - Write recorded races to disk.

Provides:
- CSV export (one row per sample, one column per horse channel)
- JSON export with race results
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List
import csv
import json
import numpy as np

from derbynet.scoring.results import RaceResult
from derbynet.telemetry.recorder import RaceRecorder, HORSE_CHANNELS


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types."""
    
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        return super().default(obj)


@dataclass
class ExporterConfig:
    """Exporter configuration."""
    output_dir: str = "./race_data"
    include_metadata: bool = True


class TelemetryExporter:
    """Export recorded races for replay or analysis."""
    
    def __init__(self, config: ExporterConfig | None = None):
        """Initialize exporter.
        
        Args:
            config: Exporter configuration
        """
        self.config = config or ExporterConfig()
        
        self._output_path = Path(self.config.output_dir)
        self._output_path.mkdir(parents=True, exist_ok=True)
    
    def export_csv(
        self,
        recorder: RaceRecorder,
        filename: str = "race.csv",
    ) -> Path:
        """Export telemetry to a CSV file.
        
        Args:
            recorder: Recorder with data
            filename: Output filename
        
        Returns:
            Path to exported file
        """
        output_file = self._output_path / filename
        
        columns: List[tuple] = [
            (horse_id, name)
            for horse_id in recorder.horse_ids
            for name in HORSE_CHANNELS
        ]
        
        # All horses are sampled together, so times line up
        times = np.array([])
        if recorder.horse_ids:
            times, _ = recorder.get_series(recorder.horse_ids[0], "position")
        
        values = {col: recorder.get_series(*col)[1] for col in columns}
        
        with open(output_file, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(["time_ms"] + [f"{name}_{horse_id}" for horse_id, name in columns])
            
            for i, t in enumerate(times):
                row = [f"{t:.1f}"]
                for col in columns:
                    row.append(f"{values[col][i]:.4f}")
                writer.writerow(row)
        
        return output_file
    
    def export_json(
        self,
        recorder: RaceRecorder,
        filename: str = "race.json",
        result: RaceResult | None = None,
    ) -> Path:
        """Export telemetry and optional results to a JSON file.
        
        Args:
            recorder: Recorder with data
            filename: Output filename
            result: Final results to embed
        
        Returns:
            Path to exported file
        """
        output_file = self._output_path / filename
        
        data = {
            "metadata": recorder.get_state() if self.config.include_metadata else {},
            "results": result.to_dict() if result is not None else None,
            "horses": {},
        }
        
        for horse_id in recorder.horse_ids:
            horse_data = {
                "name": recorder.get_name(horse_id),
                "modes": recorder.get_mode_timeline(horse_id),
            }
            for name in HORSE_CHANNELS:
                times, values = recorder.get_series(horse_id, name)
                horse_data[name] = {"times": times, "values": values}
            data["horses"][str(horse_id)] = horse_data
        
        with open(output_file, 'w') as f:
            json.dump(data, f, indent=2, cls=NumpyEncoder)
        
        return output_file
