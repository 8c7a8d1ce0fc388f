from functools import lru_cache


@lru_cache(maxsize=None)
def resolve_implementation(cls, method_name: str, model) -> str:
    """
    Name of the method of cls that implements method_name for model:
    '<method_name>_<model_name>' when cls defines it, otherwise method_name itself.
    """
    specific = f"{method_name}_{model._meta.model_name}"
    if callable(getattr(cls, specific, None)):
        return specific
    if callable(getattr(cls, method_name, None)):
        return method_name
    raise AttributeError(f"{cls.__name__} has no method '{method_name}'")


def invoke(instance, method_name: str, handler, *args, **kwargs):
    """Call the implementation of method_name for the handler's model on instance"""
    name = resolve_implementation(type(instance), method_name, handler.model)
    return getattr(instance, name)(handler, *args, **kwargs)
