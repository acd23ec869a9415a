import json
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
import xml.etree.ElementTree as ET

import pandas as pd
from tabulate import tabulate


def plain_value(value):
    """
    Converts database values into JSON-friendly ones:
    NUMERIC becomes int or float, dates become ISO strings
    """
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


class IOutputFormatter(ABC):
    """Astract classs for formatters"""
    @abstractmethod
    def format(self, data):
        pass


class JsonFormatter(IOutputFormatter):
    """Reports as one JSON object keyed by report name"""
    def format(self, data):
        def default(value):
            converted = plain_value(value)
            return str(value) if converted is value else converted

        return json.dumps(data, indent=4, default=default)


class XmlFormatter(IOutputFormatter):
    """Reports as <report><name rows="N"><item>...</item></name></report>"""
    def format(self, data):
        root = ET.Element("report")
        for query_name, records in data.items():
            query_elem = ET.SubElement(root, query_name, rows=str(len(records)))
            for record in records:
                item = ET.SubElement(query_elem, "item")
                for key, value in record.items():
                    value = plain_value(value)
                    ET.SubElement(item, key).text = "" if value is None else str(value)

        ET.indent(root, space="    ", level=0)

        return ET.tostring(root, encoding='unicode')


class TableFormatter(IOutputFormatter):
    """Realization of plain-text grid output, one titled table per report"""
    def format(self, data):
        sections = []
        for query_name, records in data.items():
            if records:
                frame = pd.DataFrame(records).map(plain_value)
                body = tabulate(frame, headers="keys", tablefmt="grid", showindex=False)
            else:
                body = "(no rows)"
            sections.append(f"{query_name}\n{body}")

        return "\n\n".join(sections)


FORMATTERS = {
    "json": JsonFormatter,
    "xml": XmlFormatter,
    "table": TableFormatter
}
