"""Debug views of the rnj AST.

display: indented tree, one node per line. Format:
    <Node>(<attr>=<value>, nodes=[
        <Node>(...),
        ...
    ])

render: an expression as fully parenthesized source text, so that parsing the result gives back an expression with the
same meaning regardless of precedence.
"""

import math
from decimal import Decimal

from rnj.core import ast
from rnj.core.runtime import stringify


def display(node, indents=0):
    """Recursively displays node (Expr, Stmt, or list of Stmt) in a readable format."""
    pad = "    " * indents
    if isinstance(node, list):
        return "\n".join(display(sub_node, indents) for sub_node in node)

    attrs, nodes = _describe(node)
    result = f"{pad}{type(node).__name__}(" + ", ".join(f"{key}={value!r}" for key, value in attrs)
    if nodes:
        result += (", " if attrs else "") + "nodes=["
        for sub_node in nodes:
            result += "\n" + display(sub_node, indents + 1) + ","
        result = result[:-1] + f"\n{pad}]"
    return result + ")"


def _describe(node):
    """Returns (attributes shown inline, child nodes) for node."""
    if isinstance(node, ast.Literal):
        return [("value", _literal(node.value))], []
    if isinstance(node, (ast.Variable, ast.Assign, ast.Get, ast.Set, ast.Var, ast.Function, ast.Class)):
        attrs = [("name", node.name.lexeme)]
        if isinstance(node, ast.Function):
            attrs.append(("params", [param.lexeme for param in node.params]))
    elif isinstance(node, (ast.Binary, ast.Logical, ast.Unary)):
        attrs = [("op", node.operator.lexeme)]
    else:
        attrs = []

    if isinstance(node, ast.Assign):
        nodes = [node.value]
    elif isinstance(node, (ast.Binary, ast.Logical)):
        nodes = [node.left, node.right]
    elif isinstance(node, ast.Unary):
        nodes = [node.right]
    elif isinstance(node, ast.Call):
        nodes = [node.callee] + node.arguments
    elif isinstance(node, ast.Get):
        nodes = [node.object]
    elif isinstance(node, ast.Set):
        nodes = [node.object, node.value]
    elif isinstance(node, (ast.Grouping, ast.Expression, ast.Print)):
        nodes = [node.expression]
    elif isinstance(node, ast.Block):
        nodes = node.statements
    elif isinstance(node, ast.Function):
        nodes = node.body
    elif isinstance(node, ast.Class):
        nodes = node.methods
    elif isinstance(node, ast.If):
        nodes = [node.condition, node.then_branch] + ([node.else_branch] if node.else_branch else [])
    elif isinstance(node, ast.While):
        nodes = [node.condition, node.body]
    elif isinstance(node, ast.Return):
        nodes = [node.value] if node.value is not None else []
    elif isinstance(node, ast.Var):
        nodes = [node.initializer] if node.initializer is not None else []
    else:
        nodes = []  # This, Break, Variable
    return attrs, nodes


def render(expr):
    """Renders expr as source text, parenthesizing every compound expression."""
    if isinstance(expr, ast.Literal):
        if isinstance(expr.value, float) and not math.isfinite(expr.value):
            raise ValueError(f"cannot render {expr.value!r} as a number literal")
        return _literal(expr.value)
    if isinstance(expr, ast.Variable):
        return expr.name.lexeme
    if isinstance(expr, ast.This):
        return "this"
    if isinstance(expr, ast.Break):
        return "break"
    if isinstance(expr, ast.Grouping):
        return render(expr.expression)  # compound expressions are parenthesized already
    if isinstance(expr, ast.Unary):
        return f"({expr.operator.lexeme}{render(expr.right)})"
    if isinstance(expr, (ast.Binary, ast.Logical)):
        return f"({render(expr.left)} {expr.operator.lexeme} {render(expr.right)})"
    if isinstance(expr, ast.Assign):
        return f"({expr.name.lexeme} = {render(expr.value)})"
    if isinstance(expr, ast.Call):
        return f"{render(expr.callee)}({', '.join(render(argument) for argument in expr.arguments)})"
    if isinstance(expr, ast.Get):
        return f"{render(expr.object)}.{expr.name.lexeme}"
    if isinstance(expr, ast.Set):
        return f"({render(expr.object)}.{expr.name.lexeme} = {render(expr.value)})"
    raise TypeError(f"cannot render {type(expr).__name__}")


def _literal(value):
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, float) and math.isfinite(value) and not value.is_integer():
        return format(Decimal(repr(value)), "f")  # no exponent: `1e-07` is written 0.0000001
    return stringify(value)
