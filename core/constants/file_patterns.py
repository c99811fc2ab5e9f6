"""
File Patterns Constants
Chua cac constants lien quan den ten file/folder bi loai khoi tree.
"""

# VCS metadata directories - luon bi exclude
VCS_DIRS: tuple[str, ...] = (".git", ".hg", ".svn")

# Build outputs va IDE metadata - so sanh theo exact name (khong phai glob)
BUILD_OUTPUT_NAMES: frozenset[str] = frozenset({
    "build", "dist", "target", "out",
})
IDE_METADATA_NAMES: frozenset[str] = frozenset({
    ".gradle", ".idea", "node_modules",
})

# Denylist mac dinh cho DefaultExclusionPolicy
DEFAULT_EXCLUDED_NAMES: frozenset[str] = (
    BUILD_OUTPUT_NAMES | IDE_METADATA_NAMES | frozenset(VCS_DIRS)
)

# Prefix cua hidden entries
HIDDEN_PREFIX = "."
