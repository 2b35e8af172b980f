"""
Data Exporters

Export benchmark results: one metrics CSV per model pipeline and a combined
Excel workbook comparing all pipelines.
"""

from typing import Dict, List, Optional, Any, Sequence, Tuple, Union
import pandas as pd
from pathlib import Path
import warnings


METRICS_COLUMNS = ['Metric', 'Value']


def write_metrics_csv(metrics: Sequence[Tuple[str, float]], filepath: Union[str, Path]) -> Path:
    """
    Write a metrics table with header Metric,Value.

    An existing file is overwritten, never appended to.

    Args:
        metrics: Ordered (metric name, percentage) pairs
        filepath: Output CSV path

    Returns:
        Path of the written file
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    table = pd.DataFrame([(str(name), float(value)) for name, value in metrics], columns=METRICS_COLUMNS)
    try:
        table.to_csv(filepath, index=False)
    except Exception as e:
        raise ValueError(f"Failed to export metrics: {e}")
    return filepath


def read_metrics_csv(filepath: Union[str, Path]) -> List[Tuple[str, float]]:
    """Read a metrics table back as ordered (metric, value) pairs."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    table = pd.read_csv(filepath)
    if table.columns.tolist() != METRICS_COLUMNS:
        raise ValueError(f"Unexpected header {table.columns.tolist()} in {filepath}, expected {METRICS_COLUMNS}")
    return [(str(name), float(value)) for name, value in table.itertuples(index=False, name=None)]


def metrics_frame(results: Dict[str, Sequence[Tuple[str, float]]]) -> pd.DataFrame:
    """
    Combine per-model metrics tables into one comparison table.

    Args:
        results: Model label -> ordered (metric, value) pairs

    Returns:
        DataFrame with one row per model and one column per metric
    """
    rows = []
    for model, metrics in results.items():
        row = {'Model': model}
        row.update({name: value for name, value in metrics})
        rows.append(row)
    return pd.DataFrame(rows)


class ExcelExporter:
    """
    Export benchmark results to Excel with multiple sheets.

    Typical usage:
    - Sheet 1: Model comparison (one row per model, four metrics)
    - One sheet per model with its tuning results

    Attributes:
        filepath (Path): Output Excel file path
        sheets (Dict[str, Dict[str, Any]]): Sheet name -> data and index flag
    """

    # Excel limit
    MAX_SHEET_NAME = 31

    def __init__(self, filepath: Union[str, Path]):
        self.filepath = Path(filepath)
        self.sheets: Dict[str, Dict[str, Any]] = {}

    def add_sheet(
        self,
        sheet_name: str,
        data: pd.DataFrame,
        index: bool = False
    ) -> None:
        """
        Add a sheet to the Excel file.

        Args:
            sheet_name: Name of the sheet
            data: DataFrame to export
            index: Whether to include DataFrame index
        """
        if not isinstance(data, pd.DataFrame):
            raise ValueError(f"Data must be a pandas DataFrame, got {type(data)}")

        if len(sheet_name) > self.MAX_SHEET_NAME:
            original_name = sheet_name
            sheet_name = sheet_name[:self.MAX_SHEET_NAME]
            warnings.warn(
                f"Sheet name '{original_name}' truncated to '{sheet_name}' "
                f"(Excel limit: {self.MAX_SHEET_NAME} characters)"
            )

        self.sheets[sheet_name] = {
            'data': data,
            'index': index
        }

    def write(
        self,
        auto_adjust_columns: bool = True,
        freeze_panes: Optional[tuple] = (1, 0)
    ) -> Optional[Path]:
        """
        Write all sheets to the Excel file (openpyxl engine).

        Args:
            auto_adjust_columns: Auto-adjust column widths
            freeze_panes: Freeze panes position (row, col) or None
        """
        if not self.sheets:
            warnings.warn("No sheets to write")
            return None

        self.filepath.parent.mkdir(parents=True, exist_ok=True)

        with pd.ExcelWriter(self.filepath, engine='openpyxl') as writer:
            for sheet_name, sheet_info in self.sheets.items():
                sheet_info['data'].to_excel(writer, sheet_name=sheet_name, index=sheet_info['index'])
                worksheet = writer.sheets[sheet_name]

                if auto_adjust_columns:
                    for column in worksheet.columns:
                        max_length = max((len(str(cell.value)) for cell in column if cell.value is not None),
                                         default=0)
                        worksheet.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)

                if freeze_panes:
                    row, col = freeze_panes
                    worksheet.freeze_panes = worksheet.cell(row + 1, col + 1).coordinate

        print(f"Excel file written: {self.filepath} (sheets: {list(self.sheets.keys())})")
        return self.filepath

    def clear(self) -> None:
        """Clear all sheets."""
        self.sheets.clear()
