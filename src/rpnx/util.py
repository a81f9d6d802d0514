from functools import wraps


class RPNError(Exception):
    pass


class EmptyStack(RPNError):
    '''
    Operator needed more operands than the stack holds.
    '''


class DomainError(RPNError):
    '''
    Operands outside the domain of the operator. Stack left as it was.
    '''


class RPNSyntaxError(RPNError):
    '''
    Bad input. Aborts the rest of the line.
    '''


class UnrecognizedInput(RPNSyntaxError):
    def __init__(self, text, message=None):
        self.text = text
        super().__init__(message or
                         "unrecognized input '{}'".format(text))


def wrap_user_errors(fmt):
    '''
    Ugly hack decorator that converts exceptions to domain errors.

    Passes through RPNErrors.
    '''
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except RPNError:
                raise
            except (ArithmeticError, ValueError) as e:
                raise DomainError(fmt.format(*args, **kwargs), e)
        return wrapper
    return decorator
