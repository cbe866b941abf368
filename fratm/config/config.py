"""
Static configuration data for the FratmScript compiler.
This includes the keyword table, operator mappings, recovery points and the
keyword documentation served to editors.
"""

from fratm.lexer.tokens import TokenKind

DEFAULT_SOURCE_NAME = "input.fratm"
SOURCE_EXTENSION = ".fratm"
TARGET_EXTENSION = ".js"
SOURCE_MAP_EXTENSION = ".map"

# The external interpreter the `run` command shells out to.
INTERPRETER_COMMAND = ["node"]

# Exact, case-sensitive spellings. Every entry is reserved: none of them can
# ever be used as an identifier.
KEYWORDS = {
    "chist": TokenKind.CHIST,
    "è": TokenKind.E,
    "tien": TokenKind.TIEN,
    "facc": TokenKind.FACC,
    "piglie": TokenKind.PIGLIE,
    "si": TokenKind.SI,
    "sinnò": TokenKind.SINNO,
    "pe": TokenKind.PE,
    "ogni": TokenKind.OGNI,
    "mentre": TokenKind.MENTRE,
    "che": TokenKind.CHE,
    "overo": TokenKind.OVERO,
    "sfòls": TokenKind.SFOLS,
    "nisciun": TokenKind.NISCIUN,
    "boh": TokenKind.BOH,
    "stamm": TokenKind.STAMM,
    "a": TokenKind.A,
    "dì": TokenKind.DI,
    "mo": TokenKind.MO,
    "vir": TokenKind.VIR,
    "aspett": TokenKind.ASPETT,
    "pruvamm": TokenKind.PRUVAMM,
    "schiatta": TokenKind.SCHIATTA,
    "iett": TokenKind.IETT,
    "nu": TokenKind.NU,
    "bell": TokenKind.BELL,
    "na": TokenKind.NA,
    "famiglie": TokenKind.FAMIGLIE,
    "stu": TokenKind.STU,
    "cos": TokenKind.COS,
    "chiamm": TokenKind.CHIAMM,
    "da": TokenKind.DA,
    "mann": TokenKind.MANN,
    "for": TokenKind.FOR,
    "predefinit": TokenKind.PREDEFINIT,
    "rompe": TokenKind.ROMPE,
    "salta": TokenKind.SALTA,
    "caso": TokenKind.CASO,
    "fisso": TokenKind.FISSO,
    "figlio": TokenKind.FIGLIO,
    "leva": TokenKind.LEVA,
    "caccia": TokenKind.CACCIA,
    "fermete": TokenKind.FERMETE,
    "scrive": TokenKind.SCRIVE,
    "avvis": TokenKind.AVVIS,
    # Logical words
    "e": TokenKind.AND,
    "o": TokenKind.OR,
    "no": TokenKind.NOT,
    "manco": TokenKind.MANCO,
    "pure": TokenKind.PURE,
}

# Single characters that always form a token on their own.
PUNCTUATION = {
    "(": TokenKind.LEFT_PAREN,
    ")": TokenKind.RIGHT_PAREN,
    "{": TokenKind.LEFT_BRACE,
    "}": TokenKind.RIGHT_BRACE,
    "[": TokenKind.LEFT_BRACKET,
    "]": TokenKind.RIGHT_BRACKET,
    ",": TokenKind.COMMA,
    ".": TokenKind.DOT,
    ":": TokenKind.COLON,
    ";": TokenKind.SEMICOLON,
    "?": TokenKind.QUESTION,
    "%": TokenKind.PERCENT,
}

# Kinds where panic-mode recovery resumes parsing.
STATEMENT_STARTERS = frozenset(
    {
        TokenKind.CHIST,
        TokenKind.TIEN,
        TokenKind.FACC,
        TokenKind.SI,
        TokenKind.MENTRE,
        TokenKind.PE,
        TokenKind.PIGLIE,
        TokenKind.NA,
        TokenKind.CHIAMM,
        TokenKind.MANN,
    }
)

# --- Operator tables, one per precedence level (token kind -> operator name) ---
LOGICAL_OR_OPERATOR_MAP = {TokenKind.OR: "or"}
LOGICAL_AND_OPERATOR_MAP = {TokenKind.AND: "and", TokenKind.PURE: "and"}
EQUALITY_OPERATOR_MAP = {
    TokenKind.EQUAL_EQUAL_EQUAL: "strict_equal",
    TokenKind.EQUAL_EQUAL: "equal",
    TokenKind.BANG_EQUAL_EQUAL: "strict_not_equal",
    TokenKind.BANG_EQUAL: "not_equal",
}
COMPARISON_OPERATOR_MAP = {
    TokenKind.LESS: "less_than",
    TokenKind.LESS_EQUAL: "less_equal",
    TokenKind.GREATER: "greater_than",
    TokenKind.GREATER_EQUAL: "greater_equal",
}
ADDITIVE_OPERATOR_MAP = {TokenKind.PLUS: "add", TokenKind.MINUS: "subtract"}
MULTIPLICATIVE_OPERATOR_MAP = {TokenKind.STAR: "multiply", TokenKind.SLASH: "divide", TokenKind.PERCENT: "modulo"}
UNARY_OPERATOR_MAP = {TokenKind.MINUS: "negate", TokenKind.NOT: "not", TokenKind.MANCO: "not"}

# --- Operator name -> target-language spelling ---
BINARY_OPERATOR_TEXT = {
    "add": "+",
    "subtract": "-",
    "multiply": "*",
    "divide": "/",
    "modulo": "%",
    "power": "**",
    "equal": "==",
    "strict_equal": "===",
    "not_equal": "!=",
    "strict_not_equal": "!==",
    "less_than": "<",
    "greater_than": ">",
    "less_equal": "<=",
    "greater_equal": ">=",
    "and": "&&",
    "or": "||",
}
UNARY_OPERATOR_TEXT = {"negate": "-", "not": "!"}

# Builtin console phrases: leading particle -> (expression kind, target callee).
CONSOLE_BUILTINS = {
    TokenKind.STAMM: ("console_log", "console.log"),
    TokenKind.AVVIS: ("console_warn", "console.warn"),
    TokenKind.SCRIVE: ("console_error", "console.error"),
}

# Documentation for editor hover and completion. Particles that only appear
# inside a longer phrase point at the phrase they belong to.
KEYWORD_DOCS = {
    "chist": {"javascript": "const", "category": "variable", "description": "Declares a constant (first particle, followed by 'è').", "snippet": "chist è ${1:name} = ${2:value}"},
    "è": {"javascript": "", "category": "variable", "description": "Second particle of 'chist è' (const)."},
    "tien": {"javascript": "let", "category": "variable", "description": "Declares a mutable variable.", "snippet": "tien ${1:name} = ${2:value}"},
    "facc": {"javascript": "function", "category": "function", "description": "Declares a function.", "snippet": "facc ${1:name}(${2:params}) {\n\t$0\n}"},
    "piglie": {"javascript": "return", "category": "function", "description": "Returns a value from the current function.", "snippet": "piglie ${1:value}"},
    "si": {"javascript": "if", "category": "control", "description": "Conditional block.", "snippet": "si (${1:condition}) {\n\t$0\n}"},
    "sinnò": {"javascript": "else", "category": "control", "description": "Alternative block of a 'si'."},
    "mentre": {"javascript": "while", "category": "control", "description": "While loop (first particle, followed by 'che').", "snippet": "mentre che (${1:condition}) {\n\t$0\n}"},
    "che": {"javascript": "", "category": "control", "description": "Second particle of 'mentre che' (while)."},
    "pe": {"javascript": "for", "category": "control", "description": "For loop ('ogni' may follow).", "snippet": "pe ogni (tien ${1:i} = 0; ${1:i} < ${2:n}; ${1:i} = ${1:i} + 1) {\n\t$0\n}"},
    "ogni": {"javascript": "", "category": "control", "description": "Optional second particle of 'pe ogni' (for)."},
    "rompe": {"javascript": "break", "category": "control", "description": "Leaves the innermost loop."},
    "salta": {"javascript": "continue", "category": "control", "description": "Skips to the next loop iteration."},
    "fermete": {"javascript": "debugger", "category": "control", "description": "Debugger breakpoint."},
    "na": {"javascript": "class", "category": "class", "description": "Declares a class (first particle, followed by 'famiglie').", "snippet": "na famiglie ${1:Name} {\n\tfacc constructor(${2:params}) {\n\t\t$0\n\t}\n}"},
    "famiglie": {"javascript": "", "category": "class", "description": "Second particle of 'na famiglie' (class)."},
    "nu": {"javascript": "new", "category": "class", "description": "Creates an instance (first particle, followed by 'bell').", "snippet": "nu bell ${1:Class}(${2:args})"},
    "bell": {"javascript": "", "category": "class", "description": "Second particle of 'nu bell' (new)."},
    "stu": {"javascript": "this", "category": "class", "description": "The current instance (first particle, followed by 'cos')."},
    "cos": {"javascript": "", "category": "class", "description": "Second particle of 'stu cos' (this)."},
    "figlio": {"javascript": "extends", "category": "class", "description": "Reserved for class inheritance."},
    "fisso": {"javascript": "static", "category": "class", "description": "Reserved for static members."},
    "chiamm": {"javascript": "import", "category": "module", "description": "Imports named bindings from a module.", "snippet": "chiamm { ${1:name} } da \"${2:module}\""},
    "da": {"javascript": "from", "category": "module", "description": "Names the module of a 'chiamm' import."},
    "mann": {"javascript": "export", "category": "module", "description": "Exports from the module (first particle, followed by 'for')."},
    "for": {"javascript": "", "category": "module", "description": "Second particle of 'mann for' (export)."},
    "predefinit": {"javascript": "default", "category": "module", "description": "Marks the default export."},
    "overo": {"javascript": "true", "category": "value", "description": "Boolean true."},
    "sfòls": {"javascript": "false", "category": "value", "description": "Boolean false."},
    "nisciun": {"javascript": "null", "category": "value", "description": "The null value."},
    "boh": {"javascript": "undefined", "category": "value", "description": "The undefined value."},
    "e": {"javascript": "&&", "category": "operator", "description": "Logical AND."},
    "pure": {"javascript": "&&", "category": "operator", "description": "Logical AND (alias)."},
    "o": {"javascript": "||", "category": "operator", "description": "Logical OR."},
    "no": {"javascript": "!", "category": "operator", "description": "Logical NOT."},
    "manco": {"javascript": "!", "category": "operator", "description": "Logical NOT (alias)."},
    "leva": {"javascript": "delete", "category": "operator", "description": "Removes a property from an object."},
    "mo": {"javascript": "async", "category": "async", "description": "Async function (first particle, followed by 'vir facc').", "snippet": "mo vir facc ${1:name}(${2:params}) {\n\t$0\n}"},
    "vir": {"javascript": "", "category": "async", "description": "Second particle of 'mo vir facc' (async function)."},
    "aspett": {"javascript": "await", "category": "async", "description": "Waits for a promise.", "snippet": "aspett ${1:promise}"},
    "caccia": {"javascript": "yield", "category": "async", "description": "Reserved for generators."},
    "caso": {"javascript": "case", "category": "control", "description": "Reserved for switch cases."},
    "pruvamm": {"javascript": "try", "category": "error", "description": "Try block.", "snippet": "pruvamm {\n\t$1\n} e si schiatta (${2:err}) {\n\t$0\n}"},
    "schiatta": {"javascript": "catch", "category": "error", "description": "Catch block, as in 'e si schiatta'."},
    "iett": {"javascript": "throw", "category": "error", "description": "Throws an exception.", "snippet": "iett nu bell Error(${1:message})"},
    "stamm": {"javascript": "console.log", "category": "console", "description": "Prints to the console ('stamm a dì').", "snippet": "stamm a dì(${1:message})"},
    "avvis": {"javascript": "console.warn", "category": "console", "description": "Prints a warning ('avvis a dì').", "snippet": "avvis a dì(${1:message})"},
    "scrive": {"javascript": "console.error", "category": "console", "description": "Prints an error ('scrive a dì').", "snippet": "scrive a dì(${1:message})"},
    "a": {"javascript": "", "category": "console", "description": "Second particle of the console phrases ('stamm a dì')."},
    "dì": {"javascript": "", "category": "console", "description": "Third particle of the console phrases ('stamm a dì')."},
}
