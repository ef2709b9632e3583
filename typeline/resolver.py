"""
Typeline positional resolver: bind tokens to field names.

Algorithm
- walk tokens in input order with a positional cursor starting at 0.
- keyed token (--name value): store value under its own name.
- positional token: store value under schema[cursor], then advance the cursor.
- a later write to the same field overwrites the earlier one (last write wins)
  and emits a DuplicatedKeyWarning.

The resolver does not check that every schema field ends up filled, nor that
keyed names belong to the schema: both are decided later by whoever consumes
the mapping (the struct visitor, through the target's own defaults).

Ordering
- the returned dict keeps first-appearance order of each field in the line, not
  schema order. Overwriting a field keeps its original position.
"""
from .faults import ArityError, DuplicatedKeyWarning, FaultCode, getdoc, trigger
from .tokenizer import Token
from .utils import ordinal


def resolve(tokens, schema, /):
    """
    Build the argument map (field name -> raw text or None) for one line.

    Parameters
    - tokens: Iterable[Token]
      Output of tokenize().
    - schema: Sequence[str]
      Ordered field names; order decides positional fill.

    Returns
    - dict[str, str | None]

    Raises
    - ArityError: more positional tokens than schema fields.
    """
    schema = tuple(schema)
    if not all(isinstance(name, str) for name in schema):
        raise TypeError("resolve() schema must be a sequence of strings")

    values = {}
    cursor = 0
    for index, token in enumerate(tokens, 1):
        if not isinstance(token, Token):
            raise TypeError("resolve() tokens must be Token instances")

        if token.positional:
            try:
                name = schema[cursor]
            except IndexError:
                raise ArityError(
                    "unexpected positional value %r at %s position" % (token.value, ordinal(index)),
                    title="too many positional values",
                    code=FaultCode.TOO_MANY_POSITIONALS,
                    hint="this command takes at most %d positional value%s; pass the rest as --name value" % (
                        len(schema), "" if len(schema) == 1 else "s"
                    ),
                    index=index,
                    schema=schema,
                    docs=getdoc(FaultCode.TOO_MANY_POSITIONALS)
                ) from None
            cursor += 1
        else:
            name = token.key

        if name in values:
            trigger(DuplicatedKeyWarning(
                "field %r is given more than once; keeping the value at %s position" % (name, ordinal(index)),
                title="duplicated field",
                code=FaultCode.DUPLICATED_KEY,
                hint="remove the earlier value for %r" % name,
                field=name,
                index=index,
                docs=getdoc(FaultCode.DUPLICATED_KEY)
            ))
        values[name] = token.value

    return values


__all__ = (
    "resolve",
)
