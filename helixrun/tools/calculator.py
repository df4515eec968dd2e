"""
arithmetic tool used by the sample calc-bot agent
"""
from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field


class CalculatorArgs(BaseModel):
    # field descriptions are what the model sees when filling in a call
    operation: str = Field(description="The operation to perform. Allowed values: 'add', 'multiply'.")
    a: float = Field(description="The first number.")
    b: float = Field(description="The second number.")


def calculate(operation: str, a: float, b: float) -> dict:
    """Apply a basic arithmetic operation to two numbers."""
    if operation == "add":
        return {"result": a + b, "status": "success"}
    if operation == "multiply":
        return {"result": a * b, "status": "success"}
    raise ValueError(
        f"unsupported operation: {operation}. Only 'add' and 'multiply' are supported."
    )


def calculator_tool(name: str = "calculator") -> BaseTool:
    return StructuredTool.from_function(
        func=calculate,
        name=name,
        description="Perform basic arithmetic operations. Use this tool for each step of a calculation.",
        args_schema=CalculatorArgs,
    )
