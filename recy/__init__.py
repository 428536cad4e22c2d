"""RECY - recycled residue form tracking backend."""
