from src.monitoring.domain.query_analysis import (
    QueryIssues,
    analyze_plan,
    analyze_sql,
    bind_values,
    suggestions,
)

__all__ = ["QueryIssues", "analyze_plan", "analyze_sql", "bind_values", "suggestions"]
