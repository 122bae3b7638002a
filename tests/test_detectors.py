"""Tests for the detector catalog."""

import pytest

from runtime_analyzer.analyzer import RuntimeAnalyzer
from runtime_analyzer.config import AnalyzerConfig
from runtime_analyzer.detectors import CATALOG, Phase, detectors_for, mask_source
from runtime_analyzer.detectors.common import is_python_source, split_lines
from runtime_analyzer.models import (
    EnvironmentRiskType,
    Likelihood,
    RuntimeIssueType,
    Severity,
)


@pytest.fixture
def analyzer():
    """Analyzer with per-call ids so each test sees ids from 1."""
    return RuntimeAnalyzer(AnalyzerConfig(id_scope="call"))


def by_rule(result, rule):
    return [f for f in result.findings() if f.rule == rule]


class TestCatalog:
    """Test catalog structure."""

    def test_rule_names_are_unique(self):
        """Test that no two detectors share a name."""
        names = [d.name for d in CATALOG]
        assert len(names) == len(set(names))

    def test_phases_run_in_order(self):
        """Test that catalog entries are grouped by phase in execution order."""
        order = list(Phase)
        indexes = [order.index(d.phase) for d in CATALOG]
        assert indexes == sorted(indexes)

    def test_every_phase_has_detectors(self):
        """Test that each phase contributes at least one detector."""
        assert {d.phase for d in CATALOG} == set(Phase)

    def test_detectors_for_partitions_catalog(self):
        """Test that per-phase lookups cover the catalog in order."""
        grouped = [d for phase in Phase for d in detectors_for(phase)]
        assert grouped == list(CATALOG)


class TestMaskSource:
    """Test comment and string masking."""

    def test_offsets_preserved(self):
        """Test that masking keeps length and newlines."""
        text = 'var a = "x/y"; // a / b\n/* c / d */ int e = 1;\n'
        masked = mask_source(text)
        assert len(masked) == len(text)
        assert masked.count("\n") == text.count("\n")
        assert "/" not in masked
        assert "int e = 1;" in masked

    def test_keep_strings(self):
        """Test that strings survive when only comments are masked."""
        masked = mask_source('url = "http://example.com"  # note\n# full comment\n', strings=False)
        assert '"http://example.com"' in masked
        assert "full comment" not in masked

    def test_triple_quoted_strings(self):
        """Test that Python docstrings are blanked."""
        masked = mask_source('def f():\n    """a / b\n    c"""\n    return 1\n')
        assert "a / b" not in masked
        assert "return 1" in masked

    def test_inline_hash_comment(self):
        """Test that a hash comment after code is blanked."""
        masked = mask_source("x = 1  # ratio is a / b\n")
        assert "x = 1" in masked
        assert "ratio" not in masked

    def test_python_floor_division_kept(self):
        """Test that // is an operator, not a comment, in Python source."""
        masked = mask_source("print(a // b)  # c / d\n", python=True)
        assert "a // b" in masked
        assert "c / d" not in masked

    def test_python_detection(self):
        """Test telling Python source from brace-language source."""
        assert is_python_source("def avg(total, count):\n    return total // count\n")
        assert not is_python_source("int Avg(int t, int c) {\n    return t / c; // note\n}\n")
        assert not is_python_source("x = 1\n")


class TestSplitLines:
    """Test try-block tracking."""

    def test_brace_try_block(self):
        """Test lines inside try braces are protected."""
        masked = mask_source(
            "void F() {\n"
            "    try {\n"
            "        Call();\n"
            "    } catch (Exception e) {\n"
            "        Log(e);\n"
            "    }\n"
            "    After();\n"
            "}\n"
        )
        protected = dict(split_lines(masked))
        assert protected[3] is True
        assert protected[5] is False
        assert protected[7] is False

    def test_python_try_block(self):
        """Test lines indented under try: are protected."""
        masked = mask_source(
            "def f():\n"
            "    try:\n"
            "        call()\n"
            "    except ValueError:\n"
            "        log()\n"
            "    after()\n"
        )
        protected = dict(split_lines(masked))
        assert protected[3] is True
        assert protected[5] is False
        assert protected[6] is False


class TestStaticReview:
    """Test static review line rules."""

    def test_unchecked_null_assignment(self, analyzer):
        """Test a member assigned null without safe navigation."""
        result = analyzer.analyze_source(
            "public class Holder {\n"
            "    public void Reset() {\n"
            "        this.value = null;\n"
            "    }\n"
            "}\n"
        )
        issues = by_rule(result, "unchecked-null-assignment")
        assert len(issues) == 1
        assert issues[0].severity == Severity.high
        assert issues[0].type == RuntimeIssueType.crash_risk
        assert issues[0].line == 3

    def test_null_comparison_not_flagged(self, analyzer):
        """Test that == null is not an assignment."""
        result = analyzer.analyze_source("if (this.value == null) { return; }\n")
        assert by_rule(result, "unchecked-null-assignment") == []

    def test_async_without_await(self, analyzer):
        """Test an async declaration with no deferred-work marker on the line."""
        result = analyzer.analyze_source("async def handler(request):\n    return request\n")
        issues = by_rule(result, "async-without-await")
        assert len(issues) == 1
        assert issues[0].severity == Severity.medium
        assert issues[0].line == 1

    def test_async_task_not_flagged(self, analyzer):
        """Test that an async Task declaration is not flagged."""
        result = analyzer.analyze_source("public async Task RunAsync(CancellationToken ct) {\n    await Work(ct);\n}\n")
        assert by_rule(result, "async-without-await") == []

    def test_unguarded_network_call(self, analyzer):
        """Test a network call outside any try block."""
        result = analyzer.analyze_source(
            "public class Api {\n"
            "    public string Get(string url) {\n"
            "        var client = new WebClient();\n"
            "        return client.DownloadString(url);\n"
            "    }\n"
            "}\n"
        )
        issues = by_rule(result, "unguarded-network-call")
        assert len(issues) >= 1
        assert all(i.severity == Severity.high for i in issues)
        assert issues[0].line == 3

    def test_network_call_inside_try_not_flagged(self, analyzer):
        """Test that a network call inside try is considered guarded."""
        result = analyzer.analyze_source(
            "public string Get(string url) {\n"
            "    try {\n"
            "        return client.DownloadString(url);\n"
            "    } catch (WebException ex) {\n"
            "        return string.Empty;\n"
            "    }\n"
            "}\n"
        )
        assert by_rule(result, "unguarded-network-call") == []

    def test_python_network_call_inside_try_not_flagged(self, analyzer):
        """Test Python try: blocks protect network calls."""
        result = analyzer.analyze_source(
            "def fetch(url):\n"
            "    try:\n"
            "        return requests.get(url)\n"
            "    except requests.RequestException:\n"
            "        return None\n"
        )
        assert by_rule(result, "unguarded-network-call") == []

    def test_unguarded_database_call(self, analyzer):
        """Test a database command executed outside any try block."""
        result = analyzer.analyze_source(
            "public void Save(string name) {\n"
            "    var cmd = new SqlCommand(\"INSERT INTO T VALUES (@n)\", conn);\n"
            "    cmd.ExecuteNonQuery();\n"
            "}\n"
        )
        issues = by_rule(result, "unguarded-database-call")
        assert len(issues) == 2
        assert {i.line for i in issues} == {2, 3}

    def test_undisposed_resource(self, analyzer):
        """Test a stream reader created without using."""
        result = analyzer.analyze_source("var reader = new StreamReader(path);\n")
        issues = by_rule(result, "undisposed-resource")
        assert len(issues) == 1
        assert issues[0].type == RuntimeIssueType.performance

    def test_using_resource_not_flagged(self, analyzer):
        """Test that using and with blocks release resources."""
        result = analyzer.analyze_source(
            "using var reader = new StreamReader(path);\n"
            "with open(path) as f:\n"
            "    data = f.read()\n"
        )
        assert by_rule(result, "undisposed-resource") == []


class TestRuntimeSimulation:
    """Test runtime simulation rules."""

    def test_async_void(self, analyzer):
        """Test that async void methods are flagged."""
        result = analyzer.analyze_source(
            "public async void OnClick(object sender, EventArgs e) {\n"
            "    await Task.Delay(1);\n"
            "}\n"
        )
        issues = by_rule(result, "async-void")
        assert len(issues) == 1
        assert issues[0].severity == Severity.high

    def test_async_without_cancellation(self, analyzer):
        """Test an async method lacking a cancellation token."""
        result = analyzer.analyze_source(
            "public async Task<string> FetchDataAsync(string url) {\n"
            "    var response = await _client.GetStringAsync(url);\n"
            "    return response;\n"
            "}\n"
        )
        issues = by_rule(result, "async-without-cancellation")
        assert len(issues) == 1
        assert "cancellation" in issues[0].description.lower()
        assert issues[0].severity == Severity.medium

    def test_async_with_cancellation_token(self, analyzer):
        """Test that a CancellationToken parameter satisfies the rule."""
        result = analyzer.analyze_source(
            "public async Task<string> FetchDataAsync(string url, CancellationToken ct) {\n"
            "    return await _client.GetStringAsync(url, ct);\n"
            "}\n"
        )
        assert by_rule(result, "async-without-cancellation") == []

    def test_unbounded_growth(self, analyzer):
        """Test a growing list with no capacity hint."""
        result = analyzer.analyze_source(
            "public class Cache {\n"
            "    private List<string> items = new List<string>();\n"
            "    public void Add(string item) { items.Add(item); }\n"
            "}\n"
        )
        issues = by_rule(result, "unbounded-growth-container")
        assert len(issues) == 1
        assert issues[0].severity == Severity.low
        assert issues[0].line == 2

    def test_capacity_hint_not_flagged(self, analyzer):
        """Test that a capacity hint suppresses the rule."""
        result = analyzer.analyze_source(
            "var items = new List<string>(capacity: 100);\n"
            "var more = new List<int>();\n"
            "items.Add(x);\n"
        )
        assert by_rule(result, "unbounded-growth-container") == []

    def test_string_concatenation_in_loop(self, analyzer):
        """Test += on a string inside a foreach body."""
        result = analyzer.analyze_source(
            "public string Join(string[] parts) {\n"
            "    string result = \"\";\n"
            "    foreach (var part in parts) {\n"
            "        result += part + \",\";\n"
            "    }\n"
            "    return result;\n"
            "}\n"
        )
        issues = by_rule(result, "string-concatenation-in-loop")
        assert len(issues) == 1
        assert issues[0].line == 4
        assert "result" in issues[0].description

    def test_oversized_allocation(self, analyzer):
        """Test a fixed buffer above the threshold."""
        result = analyzer.analyze_source("var buffer = new byte[100000];\nvar small = new byte[1024];\n")
        issues = by_rule(result, "oversized-allocation")
        assert len(issues) == 1
        assert issues[0].line == 1

    def test_oversized_allocation_threshold_is_configurable(self):
        """Test that the threshold comes from configuration."""
        analyzer = RuntimeAnalyzer(AnalyzerConfig(large_allocation_threshold=1000, id_scope="call"))
        result = analyzer.analyze_source("var small = new byte[2048];\n")
        assert len(by_rule(result, "oversized-allocation")) == 1

    def test_connection_pool_exhaustion(self, analyzer):
        """Test an HttpClient created per call."""
        result = analyzer.analyze_source(
            "public async Task<string> Get(string url, CancellationToken ct) {\n"
            "    using var client = new HttpClient();\n"
            "    return await client.GetStringAsync(url, ct);\n"
            "}\n"
        )
        issues = by_rule(result, "connection-pool-exhaustion")
        assert len(issues) == 1
        assert issues[0].line == 2

    def test_shared_client_not_flagged(self, analyzer):
        """Test that a static readonly client is the recommended shape."""
        result = analyzer.analyze_source(
            "private static readonly HttpClient Client = new HttpClient();\n"
        )
        assert by_rule(result, "connection-pool-exhaustion") == []

    def test_mutable_shared_state(self, analyzer):
        """Test a static field mutated without synchronization."""
        result = analyzer.analyze_source(
            "public class Counter {\n"
            "    private static int count = 0;\n"
            "    public static void Increment() { count++; }\n"
            "}\n"
        )
        issues = by_rule(result, "mutable-shared-state")
        assert len(issues) == 1
        assert "count" in issues[0].description
        assert issues[0].severity == Severity.high

    def test_python_module_level_mutable(self, analyzer):
        """Test a module-level dict used as a cache."""
        result = analyzer.analyze_source("_cache = {}\n\ndef get(key):\n    return _cache.get(key)\n")
        issues = by_rule(result, "mutable-shared-state")
        assert len(issues) == 1
        assert "_cache" in issues[0].description

    def test_locked_state_not_flagged(self, analyzer):
        """Test that a lock anywhere in the source suppresses the rule."""
        result = analyzer.analyze_source(
            "private static int count = 0;\n"
            "private static readonly object Gate = new object();\n"
            "public static void Increment() { lock (Gate) { count++; } }\n"
        )
        assert by_rule(result, "mutable-shared-state") == []

    def test_collection_mutated_during_iteration(self, analyzer):
        """Test removing from the collection being iterated."""
        result = analyzer.analyze_source(
            "foreach (var item in items) {\n"
            "    if (item.Expired) {\n"
            "        items.Remove(item);\n"
            "    }\n"
            "}\n"
        )
        issues = by_rule(result, "collection-mutated-during-iteration")
        assert len(issues) == 1
        assert issues[0].line == 3
        assert issues[0].type == RuntimeIssueType.crash_risk

    def test_python_collection_mutated_during_iteration(self, analyzer):
        """Test the Python spelling of the same bug."""
        result = analyzer.analyze_source(
            "for user in users:\n"
            "    if user.inactive:\n"
            "        users.remove(user)\n"
        )
        assert len(by_rule(result, "collection-mutated-during-iteration")) == 1

    def test_broad_catch(self, analyzer):
        """Test catch (Exception) and except Exception."""
        result = analyzer.analyze_source(
            "try { Run(); } catch (Exception ex) { Log(ex); }\n"
        )
        issues = by_rule(result, "broad-catch")
        assert len(issues) == 1
        assert issues[0].type == RuntimeIssueType.incorrect_output
        assert issues[0].severity == Severity.medium


class TestEnvironment:
    """Test environment and dependency rules."""

    def test_hardcoded_endpoint_one_per_url(self, analyzer):
        """Test that duplicate URLs produce a single risk."""
        result = analyzer.analyze_source(
            'var a = "https://api.example.com/v1/users";\n'
            'var b = "https://api.example.com/v1/users";\n'
            'var c = "https://billing.example.com/charge";\n'
        )
        risks = by_rule(result, "hardcoded-endpoint")
        assert len(risks) == 2
        assert risks[0].line == 1
        assert risks[1].line == 3
        assert risks[0].likelihood == Likelihood.medium
        assert risks[0].risk_type == EnvironmentRiskType.dependency
        assert len(risks[0].mitigation.required_changes) >= 1

    def test_url_in_comment_not_flagged(self, analyzer):
        """Test that URLs in comments are ignored."""
        result = analyzer.analyze_source("// see https://docs.example.com/guide\nint x = 1;\n")
        assert by_rule(result, "hardcoded-endpoint") == []

    def test_filesystem_dependency(self, analyzer):
        """Test file reads without path validation."""
        result = analyzer.analyze_source("var text = File.ReadAllText(path);\n")
        risks = by_rule(result, "filesystem-dependency")
        assert len(risks) == 1
        assert risks[0].likelihood == Likelihood.high

    def test_validated_path_not_flagged(self, analyzer):
        """Test that File.Exists suppresses the rule."""
        result = analyzer.analyze_source(
            "if (File.Exists(path)) {\n    var text = File.ReadAllText(path);\n}\n"
        )
        assert by_rule(result, "filesystem-dependency") == []

    def test_unchecked_config_access(self, analyzer):
        """Test indexed configuration access with no fallback."""
        result = analyzer.analyze_source('var conn = Configuration["ConnectionStrings:Main"];\n')
        risks = by_rule(result, "unchecked-config-access")
        assert len(risks) == 1
        assert risks[0].risk_type == EnvironmentRiskType.configuration
        assert "ConnectionStrings:Main" in risks[0].component

    def test_config_access_with_fallback(self, analyzer):
        """Test that ?? provides a fallback."""
        result = analyzer.analyze_source('var mode = Configuration["Mode"] ?? "default";\n')
        assert by_rule(result, "unchecked-config-access") == []

    def test_n_plus_one_query(self, analyzer):
        """Test a query issued once per loop iteration."""
        result = analyzer.analyze_source(
            "foreach (var user in users) {\n"
            '    var orders = db.Query("SELECT * FROM Orders WHERE UserId = @id", new { id = user.Id });\n'
            "}\n"
        )
        risks = by_rule(result, "n-plus-one-query")
        assert len(risks) == 1
        assert "N+1" in risks[0].description
        assert risks[0].likelihood == Likelihood.high
        assert risks[0].risk_type == EnvironmentRiskType.performance
        assert result.has_critical_issues is True

    def test_database_and_external_api_dependencies(self, analyzer):
        """Test the single dependency risks for databases and HTTP APIs."""
        result = analyzer.analyze_source(
            "public class Repo {\n"
            "    private readonly HttpClient _http;\n"
            "    public Repo(string cs) { _conn = new SqlConnection(cs); }\n"
            "}\n"
        )
        db = by_rule(result, "database-dependency")
        api = by_rule(result, "external-api-dependency")
        assert len(db) == 1
        assert db[0].likelihood == Likelihood.high
        assert db[0].line == 3
        assert len(api) == 1
        assert api[0].likelihood == Likelihood.medium
        assert api[0].line == 2


class TestEdgeCases:
    """Test edge-case simulation rules."""

    def test_unguarded_division(self, analyzer):
        """Test a division with no zero guard."""
        result = analyzer.analyze_source(
            "public class Calculator\n"
            "{\n"
            "    public int Divide(int a, int b)\n"
            "    {\n"
            "        return a / b;\n"
            "    }\n"
            "}\n"
        )
        assert len(result.edge_case_failures) == 1
        case = result.edge_case_failures[0]
        assert case.rule == "unguarded-division"
        assert case.severity == Severity.high
        assert "divide-by-zero" in case.expected_failure
        assert case.line == 5

    def test_guarded_division_not_flagged(self, analyzer):
        """Test that a zero check on the divisor suppresses the rule."""
        result = analyzer.analyze_source(
            "public int Divide(int a, int b) {\n"
            "    if (b == 0) throw new ArgumentException(nameof(b));\n"
            "    return a / b;\n"
            "}\n"
        )
        assert by_rule(result, "unguarded-division") == []

    def test_literal_divisor(self, analyzer):
        """Test that non-zero literal divisors are ignored and zero is flagged."""
        result = analyzer.analyze_source("var half = total / 2;\nvar boom = total / 0;\n")
        cases = by_rule(result, "unguarded-division")
        assert len(cases) == 1
        assert cases[0].line == 2

    def test_division_in_comment_or_string_ignored(self, analyzer):
        """Test that slashes in comments and strings are not divisions."""
        result = analyzer.analyze_source(
            "// ratio = a / b\n"
            'var path = "root/child";\n'
        )
        assert by_rule(result, "unguarded-division") == []

    def test_python_division(self, analyzer):
        """Test Python division with and without a guard."""
        flagged = analyzer.analyze_source("def avg(total, count):\n    return total / count\n")
        guarded = analyzer.analyze_source(
            "def avg(total, count):\n    if count == 0:\n        return 0\n    return total / count\n"
        )
        assert len(by_rule(flagged, "unguarded-division")) == 1
        assert by_rule(guarded, "unguarded-division") == []

    def test_python_floor_division(self, analyzer):
        """Test that Python floor division is checked like true division."""
        result = analyzer.analyze_source("def avg(total, count):\n    return total // count\n")
        cases = by_rule(result, "unguarded-division")
        assert len(cases) == 1
        assert cases[0].line == 2

    def test_division_in_inline_comment_ignored(self, analyzer):
        """Test that a division inside a trailing hash comment is ignored."""
        result = analyzer.analyze_source("x = 1  # ratio is a / b\n")
        assert by_rule(result, "unguarded-division") == []

    def test_unguarded_numeric_parse(self, analyzer):
        """Test int.Parse with no TryParse in scope."""
        result = analyzer.analyze_source(
            "public class Parser {\n"
            "    public int Read(string input) {\n"
            "        return int.Parse(input);\n"
            "    }\n"
            "}\n"
        )
        cases = by_rule(result, "unguarded-numeric-parse")
        assert len(cases) == 1
        assert cases[0].severity == Severity.medium
        assert "non-numeric" in cases[0].input.lower()
        assert "FormatException" in cases[0].expected_failure

    def test_int32_parse(self, analyzer):
        """Test the Int32.Parse spelling."""
        result = analyzer.analyze_source("var n = Int32.Parse(text);\n")
        assert len(by_rule(result, "unguarded-numeric-parse")) == 1

    def test_try_parse_suppresses(self, analyzer):
        """Test that a TryParse anywhere in scope suppresses the rule."""
        result = analyzer.analyze_source(
            "var n = int.Parse(a);\nif (!int.TryParse(b, out var m)) { m = 0; }\n"
        )
        assert by_rule(result, "unguarded-numeric-parse") == []

    def test_unbounded_index_access(self, analyzer):
        """Test indexing with no length check."""
        result = analyzer.analyze_source(
            "public int First(int[] values) {\n"
            "    return values[0];\n"
            "}\n"
        )
        cases = by_rule(result, "unbounded-index-access")
        assert len(cases) == 1
        assert cases[0].severity == Severity.high
        assert cases[0].line == 2

    def test_index_with_length_check(self, analyzer):
        """Test that a Length check suppresses the rule."""
        result = analyzer.analyze_source(
            "public int First(int[] values) {\n"
            "    if (values.Length == 0) return -1;\n"
            "    return values[0];\n"
            "}\n"
        )
        assert by_rule(result, "unbounded-index-access") == []

    def test_missing_null_parameter_guard(self, analyzer):
        """Test a public method taking a string with no guard."""
        result = analyzer.analyze_source(
            "public int Count(string text) {\n"
            "    return text.Trim().Length;\n"
            "}\n"
        )
        cases = by_rule(result, "missing-null-parameter-guard")
        assert len(cases) == 1
        assert cases[0].input == "null string parameter"
        assert cases[0].severity == Severity.medium

    def test_null_parameter_guard_present(self, analyzer):
        """Test that IsNullOrEmpty on the parameter is a guard."""
        result = analyzer.analyze_source(
            "public int Count(string text) {\n"
            "    if (string.IsNullOrEmpty(text)) return 0;\n"
            "    return text.Trim().Length;\n"
            "}\n"
        )
        assert by_rule(result, "missing-null-parameter-guard") == []


class TestErrorPropagation:
    """Test error-propagation rules."""

    def test_empty_catch(self, analyzer):
        """Test an empty catch block."""
        result = analyzer.analyze_source("try { DoWork(); } catch (Exception) { }\n")
        issues = by_rule(result, "empty-catch")
        assert len(issues) == 1
        assert issues[0].severity == Severity.high
        assert "silent failure" in issues[0].description.lower()

    def test_empty_catch_brace_on_own_line(self, analyzer):
        """Test an empty catch whose braces sit on their own lines."""
        result = analyzer.analyze_source(
            "public void Load()\n"
            "{\n"
            "    try\n"
            "    {\n"
            "        Read();\n"
            "    }\n"
            "    catch (IOException ex)\n"
            "    {\n"
            "    }\n"
            "}\n"
        )
        issues = by_rule(result, "empty-catch")
        assert len(issues) == 1
        assert issues[0].line == 7

    def test_catch_with_body_on_own_lines_not_flagged(self, analyzer):
        """Test that a multi-line handler with a body is not empty."""
        result = analyzer.analyze_source(
            "try\n{\n    Read();\n}\ncatch (IOException ex)\n{\n    Log(ex);\n}\n"
        )
        assert by_rule(result, "empty-catch") == []

    def test_python_except_pass(self, analyzer):
        """Test except: pass in Python."""
        result = analyzer.analyze_source(
            "try:\n    work()\nexcept ValueError:\n    pass\n"
        )
        assert len(by_rule(result, "empty-catch")) == 1

    def test_catch_with_body_not_flagged(self, analyzer):
        """Test that a handler with a body is not empty."""
        result = analyzer.analyze_source("try { DoWork(); } catch (IOException ex) { Log(ex); }\n")
        assert by_rule(result, "empty-catch") == []

    def test_unhandled_async_exception_path(self, analyzer):
        """Test async code with no try anywhere."""
        result = analyzer.analyze_source(
            "public async Task LoadAsync(CancellationToken ct) {\n"
            "    await _repo.LoadAsync(ct);\n"
            "}\n"
        )
        issues = by_rule(result, "unhandled-async-exception-path")
        assert len(issues) == 1
        assert issues[0].severity == Severity.high

    def test_async_with_try_not_flagged(self, analyzer):
        """Test that a try block in scope suppresses the rule."""
        result = analyzer.analyze_source(
            "public async Task LoadAsync(CancellationToken ct) {\n"
            "    try { await _repo.LoadAsync(ct); } catch (IOException ex) { _log.Error(ex); throw; }\n"
            "}\n"
        )
        assert by_rule(result, "unhandled-async-exception-path") == []


class TestCleanSource:
    """Test that fault-free code yields an empty result."""

    def test_simple_class_has_no_findings(self, analyzer):
        """Test a method returning a string literal."""
        result = analyzer.analyze_source(
            "public class SimpleClass\n"
            "{\n"
            "    public string GetMessage()\n"
            "    {\n"
            "        return \"Hello World\";\n"
            "    }\n"
            "}\n"
        )
        assert result.runtime_issues == ()
        assert result.environment_risks == ()
        assert result.edge_case_failures == ()
        assert result.total_issue_count == 0
        assert result.has_critical_issues is False
