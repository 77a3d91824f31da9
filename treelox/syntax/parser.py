"""Recursive descent parser for the treelox language. Grammar, from lowest to highest precedence:

```
<program>     ::= <declaration>* EOF
<declaration> ::= <class_decl> | <fun_decl> | <var_decl> | <statement>
<class_decl>  ::= "class" IDENTIFIER "{" ( "class"? <function> )* "}"    ; "class" marks a static method
<fun_decl>    ::= "fun" <function>
<function>    ::= IDENTIFIER "(" <parameters>? ")" <block>
<var_decl>    ::= "var" IDENTIFIER ( "=" <expression> )? ( "," IDENTIFIER ( "=" <expression> )? )* ";"
<statement>   ::= <expr_stmt> | <for_stmt> | <if_stmt> | <print_stmt> | <return_stmt> | <while_stmt> | <block>

<expression>  ::= <assignment>
<assignment>  ::= ( <call> "." )? IDENTIFIER "=" <assignment> | <lambda>
<lambda>      ::= "lambda" "(" <parameters>? ")" ( <block> | <expression> ) | <ternary>
<ternary>     ::= <or> ( "?" <ternary> ":" <ternary> )?                  ; right associative
<or>          ::= <and> ( "or" <and> )*
<and>         ::= <equality> ( "and" <equality> )*
<equality>    ::= <comparison> ( ( "!=" | "==" ) <comparison> )*
<comparison>  ::= <term> ( ( ">" | ">=" | "<" | "<=" ) <term> )*
<term>        ::= <factor> ( ( "-" | "+" ) <factor> )*
<factor>      ::= <unary> ( ( "/" | "*" | "%" ) <unary> )*
<unary>       ::= ( "!" | "-" ) <unary> | <call>
<call>        ::= <primary> ( "(" <arguments>? ")" | "." IDENTIFIER )*
<primary>     ::= "true" | "false" | "nil" | "this" | "print" | NUMBER | STRING | IDENTIFIER | "(" <expression> ")"
```

`for` loops have no node of their own: they are desugared into blocks and `while` loops here.
"""

from treelox.lang.error import TOO_DEEP, ParseError
from treelox.syntax import ast
from treelox.syntax.tokens import Token, TokenType


MAX_ARITY = 8  # most parameters/arguments a function can have, inclusive


class Parser:
    """Turns a list of Tokens into statements (or a single expression). Errors are reported to error_handler; after
    one, the parser skips ahead to the next statement and keeps going, so every independent error gets reported.
    """
    SYNC = {TokenType.CLASS, TokenType.FUN, TokenType.VAR, TokenType.FOR, TokenType.IF, TokenType.WHILE,
            TokenType.PRINT, TokenType.RETURN}

    def __init__(self, tokens, error_handler):
        self.tokens = tokens
        self.error_handler = error_handler
        self.current = 0

    def parse(self):
        """Parses a whole program. Declarations that failed to parse are left out."""
        statements = []
        while not self.is_at_end():
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)
        return statements

    def parse_expression(self):
        """Parses a single expression (interactive mode). Returns None if it is malformed."""
        try:
            return self.expression()
        except ParseError:
            return None
        except RecursionError:
            self.error(self.peek(), TOO_DEEP)
            return None

    # -----------------------------------------------------------------------------------------------------------------
    # declarations and statements

    def declaration(self):
        try:
            if self.match(TokenType.CLASS):
                return self.class_declaration()
            if self.match(TokenType.FUN):
                return self.function("function")
            if self.match(TokenType.VAR):
                return self.var_declaration()
            return self.statement()
        except ParseError:
            self.synchronize()
            return None
        except RecursionError:
            self.error(self.peek(), TOO_DEEP)
            self.synchronize()
            return None

    def class_declaration(self):
        name = self.consume(TokenType.IDENTIFIER, "Expect class name.")
        self.consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")

        methods = []
        static_methods = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            if self.match(TokenType.CLASS):
                static_methods.append(self.function("static method"))
            else:
                methods.append(self.function("method"))

        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")
        return ast.Class(name, methods, static_methods)

    def function(self, kind):
        """Parses the rest of a function declaration. kind is only used for error messages."""
        name = self.consume(TokenType.IDENTIFIER, f"Expect {kind} name.")
        self.consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params = self.parameters()
        self.consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        return ast.Function(name, params, self.block())

    def parameters(self):
        """Parses a (possibly empty) parameter list and its closing ")"."""
        params = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARITY:
                    self.error(self.peek(), f"Cannot have more than {MAX_ARITY} parameters.")
                params.append(self.consume(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self.match(TokenType.COMMA):
                    break
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        return params

    def var_declaration(self):
        declarations = [self.var_declarator()]
        while self.match(TokenType.COMMA):
            declarations.append(self.var_declarator())

        self.consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return ast.MultiVar(declarations)

    def var_declarator(self):
        name = self.consume(TokenType.IDENTIFIER, "Expect variable name.")
        initializer = self.expression() if self.match(TokenType.EQUAL) else None
        return ast.Var(name, initializer)

    def statement(self):
        if self.match(TokenType.FOR):
            return self.for_statement()
        if self.match(TokenType.IF):
            return self.if_statement()
        if self.match(TokenType.PRINT):
            return self.print_statement()
        if self.match(TokenType.RETURN):
            return self.return_statement()
        if self.match(TokenType.WHILE):
            return self.while_statement()
        if self.match(TokenType.LEFT_BRACE):
            return ast.Block(self.block())
        return self.expression_statement()

    def for_statement(self):
        """Desugars `for (init; cond; incr) body` into `{ init; while (cond) { body; incr; } }`."""
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self.match(TokenType.SEMICOLON):
            initializer = None
        elif self.match(TokenType.VAR):
            initializer = self.var_declaration()
        else:
            initializer = self.expression_statement()

        condition = None if self.check(TokenType.SEMICOLON) else self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None if self.check(TokenType.RIGHT_PAREN) else self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self.statement()
        if increment is not None:
            body = ast.Block([body, ast.Expression(increment)])

        if condition is None:
            condition = ast.Literal(True)
        body = ast.While(condition, body)

        if initializer is not None:
            body = ast.Block([initializer, body])
        return body

    def if_statement(self):
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self.statement()
        else_branch = self.statement() if self.match(TokenType.ELSE) else None
        return ast.If(condition, then_branch, else_branch)

    def print_statement(self):
        value = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return ast.Print(value)

    def return_statement(self):
        keyword = self.previous()
        value = None if self.check(TokenType.SEMICOLON) else self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return ast.Return(keyword, value)

    def while_statement(self):
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        return ast.While(condition, self.statement())

    def block(self):
        """Parses the statements of a block whose "{" has been consumed, along with the closing "}"."""
        statements = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)

        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def expression_statement(self):
        expr = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return ast.Expression(expr)

    # -----------------------------------------------------------------------------------------------------------------
    # expressions

    def expression(self):
        return self.assignment()

    def assignment(self):
        expr = self.lambda_expression()

        if self.match(TokenType.EQUAL):
            equals = self.previous()
            value = self.assignment()

            if isinstance(expr, ast.Variable):
                return ast.Assign(expr.name, value)
            elif isinstance(expr, ast.Get):
                return ast.Set(expr.object, expr.name, value)

            self.error(equals, "Invalid assignment target.")  # reported, but no need to synchronize

        return expr

    def lambda_expression(self):
        if not self.match(TokenType.LAMBDA):
            return self.ternary()

        keyword = self.previous()
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'lambda'.")
        params = self.parameters()

        if self.match(TokenType.LEFT_BRACE):
            return ast.Lambda(keyword, params, self.block())

        if self.check(TokenType.RETURN):
            raise self.error(self.peek(), "Expect lambda expression, not return statement.")

        implicit_return = Token(TokenType.RETURN, "return", None, self.peek().line)
        return ast.Lambda(keyword, params, [ast.Return(implicit_return, self.expression())])

    def ternary(self):
        expr = self.logical_or()

        if self.match(TokenType.QUESTION):
            then_branch = self.ternary()
            self.consume(TokenType.COLON, "Expect ':' after then branch of ternary expression.")
            else_branch = self.ternary()
            return ast.Ternary(expr, then_branch, else_branch)

        return expr

    def logical_or(self):
        return self._left_assoc(self.logical_and, ast.Logical, TokenType.OR)

    def logical_and(self):
        return self._left_assoc(self.equality, ast.Logical, TokenType.AND)

    def equality(self):
        return self._left_assoc(self.comparison, ast.Binary, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def comparison(self):
        return self._left_assoc(self.term, ast.Binary, TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS,
                                TokenType.LESS_EQUAL)

    def term(self):
        return self._left_assoc(self.factor, ast.Binary, TokenType.MINUS, TokenType.PLUS)

    def factor(self):
        return self._left_assoc(self.unary, ast.Binary, TokenType.SLASH, TokenType.STAR, TokenType.MODULO)

    def _left_assoc(self, operand, node, *types):
        """Parses a left associative chain of operand separated by any operator in types."""
        expr = operand()
        while self.match(*types):
            operator = self.previous()
            expr = node(expr, operator, operand())
        return expr

    def unary(self):
        if self.match(TokenType.BANG, TokenType.MINUS):
            operator = self.previous()
            return ast.Unary(operator, self.unary())
        return self.call()

    def call(self):
        expr = self.primary()

        while True:
            if self.match(TokenType.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenType.DOT):
                name = self.consume(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = ast.Get(expr, name)
            else:
                return expr

    def finish_call(self, callee):
        arguments = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARITY:
                    self.error(self.peek(), f"Cannot have more than {MAX_ARITY} arguments.")
                arguments.append(self.expression())
                if not self.match(TokenType.COMMA):
                    break

        paren = self.consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return ast.Call(callee, paren, arguments)

    def primary(self):
        if self.match(TokenType.FALSE):
            return ast.Literal(False)
        if self.match(TokenType.TRUE):
            return ast.Literal(True)
        if self.match(TokenType.NIL):
            return ast.Literal(None)
        if self.match(TokenType.NUMBER, TokenType.STRING):
            return ast.Literal(self.previous().literal)
        if self.match(TokenType.THIS):
            return ast.This(self.previous())
        if self.match(TokenType.IDENTIFIER, TokenType.PRINT):  # "print" alone names the native function
            return ast.Variable(self.previous())
        if self.match(TokenType.LEFT_PAREN):
            expr = self.expression()
            self.consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return ast.Grouping(expr)

        raise self.error(self.peek(), "Expect expression.")

    # -----------------------------------------------------------------------------------------------------------------
    # helpers

    def consume(self, token_type, msg):
        if self.check(token_type):
            return self.advance()
        raise self.error(self.peek(), msg)

    def error(self, token, msg):
        """Reports an error at token and returns (not raises) a ParseError, so callers decide whether to unwind."""
        self.error_handler.token_error(token, msg)
        return ParseError(msg)

    def synchronize(self):
        """Discards tokens until the start of what looks like the next statement."""
        self.advance()

        while not self.is_at_end():
            if self.previous().type is TokenType.SEMICOLON:
                return
            if self.peek().type in Parser.SYNC:
                return
            self.advance()

    def match(self, *types):
        for token_type in types:
            if self.check(token_type):
                self.advance()
                return True
        return False

    def check(self, token_type):
        return not self.is_at_end() and self.peek().type is token_type

    def advance(self):
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def is_at_end(self):
        return self.peek().type is TokenType.EOF

    def peek(self):
        return self.tokens[self.current]

    def previous(self):
        return self.tokens[self.current - 1]
