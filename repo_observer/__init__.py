"""Repository observer: snapshot GitHub repositories and mirror them as issues."""
