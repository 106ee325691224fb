from typing import Optional, Dict, Any


class KeyRegistry:
    # Interface
    def get_file_key(self, user_id: str, path: str) -> Optional[bytes]: ...
    def set_file_key(self, path: str, user_id: str, wrapped_key: bytes) -> None: ...
    def delete_file_key(self, path: str, user_id: str) -> None: ...
    def get_public_key(self, user_id: str) -> Optional[bytes]: ...
    def set_public_key(self, user_id: str, public_key: bytes) -> None: ...
    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None: ...
