"""File path resolution utilities for CLI."""

from pathlib import Path


def resolve_file_path(file_path: str, description: str = "File") -> Path:
    """
    Resolve an input file path relative to the current directory.
    
    Only searches the current directory. Does not search subdirectories.
    
    Args:
        file_path: User-provided file path or name
        description: What the file holds, for error messages
        
    Returns:
        Resolved Path object
        
    Raises:
        FileNotFoundError: If file cannot be found
    """
    path = Path(file_path)
    resolved_path = path if path.is_absolute() else Path.cwd() / path
    resolved_path = resolved_path.resolve()
    
    if not resolved_path.exists():
        raise FileNotFoundError(
            f"{description} not found: {file_path}. Please check the file path and try again."
        )
    
    if not resolved_path.is_file():
        raise FileNotFoundError(
            f"Path is not a file: {file_path}. Please provide a valid file path."
        )
    
    return resolved_path
