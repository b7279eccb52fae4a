"""
Workbook Tool
Writes report tables into one spreadsheet workbook
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from openpyxl import Workbook
from openpyxl.cell import WriteOnlyCell

from ..utils.records import Table
from ..utils.tool_registry import Tool


class WorkbookTool(Tool):
    """Tool for serializing report tables to an .xlsx workbook"""

    def __init__(self, output_path: Union[str, Path] = "alerts.xlsx"):
        super().__init__(
            name="workbook_tool",
            description="Write report tables as named sheets of one workbook",
        )
        self.output_path = Path(output_path)

    def execute(self, **kwargs) -> Any:
        """Execute the workbook tool"""
        return self.write_workbook(kwargs["sheets"], kwargs.get("output_path"))

    def _cell(self, worksheet, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        # text starting with "=" would otherwise be stored as a formula
        cell = WriteOnlyCell(worksheet, value=value)
        cell.data_type = "s"
        return cell

    def write_workbook(
        self,
        sheets: Mapping[str, Table],
        output_path: Optional[Union[str, Path]] = None,
    ) -> Path:
        """
        Write one sheet per table, in mapping order

        The workbook is saved to a temporary file next to the target and
        then moved into place, so the target is either the complete new
        workbook or left untouched.

        Args:
            sheets: Sheet name to table, in the order the sheets should appear
            output_path: Target file (defaults to the tool's output path)

        Returns:
            Path of the written workbook
        """
        target = Path(output_path) if output_path else self.output_path

        workbook = Workbook(write_only=True)
        for sheet_name, table in sheets.items():
            worksheet = workbook.create_sheet(title=sheet_name)
            for row in table:
                worksheet.append([self._cell(worksheet, value) for value in row])

        target.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        os.close(fd)
        try:
            workbook.save(temp_name)
            os.replace(temp_name, target)
        except BaseException:
            if os.path.exists(temp_name):
                os.remove(temp_name)
            raise

        return target
