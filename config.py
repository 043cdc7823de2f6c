# config.py
import os

# ======= Worker / search caps =======
WORKERS        = int(os.getenv("PP_WORKERS", "1"))
METHOD         = os.getenv("PP_METHOD", "backtrack").strip().lower() or "backtrack"

# ======= Backtracking heuristics =======
SYMMETRY_BREAKING = int(os.getenv("PP_SYMMETRY_BREAKING", "1")) != 0

# ======= CP-SAT cross-check =======
CP_SAT_MAX_SECONDS = float(os.getenv("PP_CP_SAT_MAX_SECONDS", "30"))
CP_SAT_WORKERS     = int(os.getenv("PP_CP_SAT_WORKERS", "1"))
MAX_MEMORY_MB      = int(os.getenv("PP_MAX_MEMORY_MB", "2048"))

# ======= Output names =======
RESULTS_OUT  = os.getenv("PP_RESULTS_OUT", "results.txt")
LAYOUT_HTML  = os.getenv("PP_LAYOUT_HTML", "layout_view.html")
RENDER_SCALE = int(os.getenv("PP_RENDER_SCALE", "24"))  # px per cell

class CFG:
    WORKERS = WORKERS
    METHOD  = METHOD

    SYMMETRY_BREAKING = SYMMETRY_BREAKING

    CP_SAT_MAX_SECONDS = CP_SAT_MAX_SECONDS
    CP_SAT_WORKERS     = CP_SAT_WORKERS
    MAX_MEMORY_MB      = MAX_MEMORY_MB

    RESULTS_OUT  = RESULTS_OUT
    LAYOUT_HTML  = LAYOUT_HTML
    RENDER_SCALE = RENDER_SCALE

METHODS = ("backtrack", "cp_sat")

__all__ = ["CFG", "METHODS"]
