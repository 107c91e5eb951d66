"""Dashboard route modules, one APIRouter factory per area."""
