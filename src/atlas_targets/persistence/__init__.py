from .result_store import ResultStore, TargetMeta, file_paths, hash_files, hash_value

__all__ = ["ResultStore", "TargetMeta", "file_paths", "hash_files", "hash_value"]
