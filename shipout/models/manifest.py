"""Project manifest model"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any


@dataclass(frozen=True)
class PackageManifest:
    """Parsed project manifest (package.json)"""

    name: str
    version: str
    files: Optional[List[str]] = None
    shipout: Optional[Dict[str, Any]] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def is_namespaced(self) -> bool:
        """Check if the package name carries a namespace prefix"""
        return "/" in self.name

    @property
    def namespace(self) -> Optional[str]:
        """Get the namespace prefix (text before the last '/')"""
        if not self.is_namespaced:
            return None
        return self.name.rsplit("/", 1)[0]

    @property
    def unscoped_name(self) -> str:
        """Get the package name without its namespace"""
        return self.name.rsplit("/", 1)[-1]

    @property
    def declares_files(self) -> bool:
        """Check if an explicit files list is declared"""
        return self.files is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PackageManifest':
        """Create from dictionary"""
        files = data.get("files")
        return cls(
            name=data["name"],
            version=data["version"],
            files=list(files) if files is not None else None,
            shipout=data.get("shipout"),
            raw=data
        )
