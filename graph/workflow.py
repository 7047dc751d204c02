from langgraph.graph import StateGraph, START, END
from graph.state import BookingState
from graph.nodes.capture import capture
from graph.nodes.record import record

def build_workflow():
    """Build the booking processing workflow."""
    workflow = StateGraph(BookingState)

    workflow.add_node("capture", capture)
    workflow.add_node("record", record)

    workflow.add_edge(START, "capture")

    def branch_decision(state: BookingState) -> str:
        return "end" if state.get("skipped") else "record"

    workflow.add_conditional_edges(
        "capture",
        branch_decision,
        {"record": "record", "end": END}
    )
    workflow.add_edge("record", END)

    return workflow.compile()
