from .ports import DispatchFailure, DispatchResult, ExportConnectorPort, ExportResult

__all__ = ["DispatchFailure", "DispatchResult", "ExportConnectorPort", "ExportResult"]
