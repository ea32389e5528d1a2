from .file_labeled_data_provider import FileLabeledDataProvider, InMemoryLabeledDataProvider

__all__ = ["FileLabeledDataProvider", "InMemoryLabeledDataProvider"]
