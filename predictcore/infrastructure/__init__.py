"""
Infrastructure Layer Package

Concrete adapters for the domain ports: model version persistence
(in-memory and MongoDB), scikit-learn training, file-backed labeled data and
monitoring strategies.
"""
