# app/agent/graph.py
from functools import partial

from langgraph.graph import START, END, StateGraph

from app.agent.state import IntakeState
from app.agent.nodes import (
    IntakeDeps,
    ocr_node, parse_node, review_node, save_node, schedule_node, no_meds_node,
    route_after_ocr, route_after_parse, route_after_review, route_after_save,
)


def build_intake_graph(deps: IntakeDeps):
    builder = StateGraph(IntakeState)

    builder.add_node("ocr", partial(ocr_node, deps=deps))
    builder.add_node("parse", partial(parse_node, deps=deps))
    builder.add_node("review", review_node)
    builder.add_node("save", partial(save_node, deps=deps))
    builder.add_node("schedule", partial(schedule_node, deps=deps))
    builder.add_node("no_meds", partial(no_meds_node, deps=deps))

    builder.add_edge(START, "ocr")
    builder.add_conditional_edges("ocr", route_after_ocr, {
        "parse": "parse",
        "end": END,
    })
    builder.add_conditional_edges("parse", route_after_parse, {
        "review": "review",
        "save": "save",
    })
    builder.add_conditional_edges("review", route_after_review, {
        "save": "save",
        "end": END,
    })
    builder.add_conditional_edges("save", route_after_save, {
        "schedule": "schedule",
        "no_meds": "no_meds",
    })
    builder.add_edge("schedule", END)
    builder.add_edge("no_meds", END)

    return builder.compile()
