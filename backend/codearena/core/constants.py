"""Judge-wide enumerations and fixed tables"""

from enum import Enum


class Verdict(str, Enum):
    """Outcome of a submission or of a single test case"""
    PENDING = "Pending"
    RUNNING = "Running"
    ACCEPTED = "Accepted"
    WRONG_ANSWER = "Wrong Answer"
    TIME_LIMIT_EXCEEDED = "Time Limit Exceeded"
    MEMORY_LIMIT_EXCEEDED = "Memory Limit Exceeded"
    RUNTIME_ERROR = "Runtime Error"
    COMPILATION_ERROR = "Compilation Error"
    # Test case ran without an expected output to compare against
    EXECUTED = "Executed"


TERMINAL_VERDICTS = frozenset({
    Verdict.ACCEPTED,
    Verdict.WRONG_ANSWER,
    Verdict.TIME_LIMIT_EXCEEDED,
    Verdict.MEMORY_LIMIT_EXCEEDED,
    Verdict.RUNTIME_ERROR,
    Verdict.COMPILATION_ERROR,
})


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


DIFFICULTY_POINTS = {
    Difficulty.EASY: 10,
    Difficulty.MEDIUM: 25,
    Difficulty.HARD: 50,
}


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class ContestStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    ENDED = "ended"


DEFAULT_CONTEST_PROBLEM_POINTS = 100


class LanguageEnum(str, Enum):
    """Supported programming languages"""
    CPP = "cpp"
    C = "c"
    JAVA = "java"
    PYTHON3 = "python3"
    JAVASCRIPT = "javascript"
    GO = "go"
    RUST = "rust"
    TYPESCRIPT = "typescript"
    CSHARP = "csharp"
    RUBY = "ruby"


# Execution backend language ids
LANGUAGES = {
    "cpp": {"id": 54, "name": "C++ (GCC 9.2.0)", "extension": "cpp"},
    "c": {"id": 50, "name": "C (GCC 9.2.0)", "extension": "c"},
    "java": {"id": 62, "name": "Java (OpenJDK 13.0.1)", "extension": "java"},
    "python3": {"id": 71, "name": "Python 3 (3.8.1)", "extension": "py"},
    "javascript": {"id": 63, "name": "JavaScript (Node.js 12.14.0)", "extension": "js"},
    "go": {"id": 60, "name": "Go (1.13.5)", "extension": "go"},
    "rust": {"id": 73, "name": "Rust (1.40.0)", "extension": "rs"},
    "typescript": {"id": 74, "name": "TypeScript (3.7.4)", "extension": "ts"},
    "csharp": {"id": 51, "name": "C# (Mono 6.6.0.161)", "extension": "cs"},
    "ruby": {"id": 72, "name": "Ruby (2.7.0)", "extension": "rb"},
}

# Execution backend status ids. "Accepted" here only means the program ran to
# completion; output comparison happens in the test runner. Status 4 is only
# produced when the backend is given an expected output, which we never send.
JUDGE0_STATUS = {
    1: Verdict.PENDING,
    2: Verdict.RUNNING,
    3: Verdict.ACCEPTED,
    4: Verdict.ACCEPTED,
    5: Verdict.TIME_LIMIT_EXCEEDED,
    6: Verdict.COMPILATION_ERROR,
    7: Verdict.RUNTIME_ERROR,
    8: Verdict.RUNTIME_ERROR,
    9: Verdict.RUNTIME_ERROR,
    10: Verdict.RUNTIME_ERROR,
    11: Verdict.RUNTIME_ERROR,
    12: Verdict.MEMORY_LIMIT_EXCEEDED,
    13: Verdict.RUNTIME_ERROR,
    14: Verdict.RUNTIME_ERROR,
}
