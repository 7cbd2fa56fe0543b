"""
Normalization engine: reading, detection, classification, linkage,
decomposition and session assembly.

Modules are imported directly (session_normalizer.normalization.decomposer);
this package does not re-export them, so importing one stage does not pull
in the others.
"""
