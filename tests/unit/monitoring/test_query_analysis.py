from decimal import Decimal

from src.monitoring.domain.query_analysis import QueryIssues, analyze_plan, analyze_sql, bind_values, suggestions


def test_select_all_without_where():
    issues = analyze_sql("SELECT * FROM tenants")
    assert issues.select_all
    assert issues.missing_where
    assert not issues.n_plus_one


def test_limit_one_and_writes_do_not_need_where():
    assert not analyze_sql("SELECT id FROM plans LIMIT 1").missing_where
    assert not analyze_sql("DELETE FROM sessions").missing_where


def test_in_list_and_leading_wildcard():
    issues = analyze_sql("SELECT id FROM agents WHERE id IN (1, 2) AND name ILIKE '%bot'")
    assert issues.n_plus_one
    assert issues.leading_wildcard
    assert not issues.missing_where


def test_plan_detects_sequential_scan_columns_sort_and_hash():
    plan = [{
        "Plan": {
            "Node Type": "Sort",
            "Plans": [{
                "Node Type": "Hash Join",
                "Plans": [
                    {"Node Type": "Seq Scan", "Filter": "((tenant_id)::text = 'acme'::text)"},
                    {"Node Type": "Hash", "Plans": [
                        {"Node Type": "Seq Scan", "Filter": "(status = 'active'::text)"},
                    ]},
                ],
            }],
        }
    }]

    issues = analyze_plan(plan)

    assert issues.missing_index == ["tenant_id", "status"]
    assert issues.filesort
    assert issues.temp_table


def test_plan_of_unexpected_shape_is_clean():
    assert analyze_plan([]) == QueryIssues()
    assert analyze_plan({"nope": 1}) == QueryIssues()


def test_suggestions_follow_issue_order():
    issues = analyze_sql("SELECT * FROM tenants").merge(QueryIssues(missing_index=["email"], filesort=True))
    advice = suggestions(issues)
    assert [s["type"] for s in advice] == ["select_all", "missing_where", "missing_index", "filesort"]
    assert advice[2]["severity"] == "critical"
    assert advice[2]["message"].endswith("email")


def test_bind_values_quotes_literals():
    sql = bind_values(
        "SELECT * FROM t WHERE a = ? AND b = %s AND c = ? AND d = ? AND e = ?",
        [None, True, "O'Brien", Decimal("1.50")],
    )
    assert sql == "SELECT * FROM t WHERE a = NULL AND b = TRUE AND c = 'O''Brien' AND d = 1.50 AND e = ?"


def test_bind_values_without_params():
    assert bind_values("SELECT 1", None) == "SELECT 1"


def test_plan_filter_columns_behind_casts():
    plan = [{
        "Plan": {
            "Node Type": "Seq Scan",
            "Filter": "(((email)::character varying = 'a@b.io'::text) AND ((tenant_id)::text = 'acme'::text) "
                      "AND (total > 10))",
        }
    }]

    assert analyze_plan(plan).missing_index == ["email", "tenant_id", "total"]
