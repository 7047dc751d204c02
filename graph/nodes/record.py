from langchain_core.runnables import RunnableConfig
from graph.state import BookingState
from tools.notion import NotionError
from loguru import logger

async def record(state: BookingState, config: RunnableConfig) -> BookingState:
    """Create the CRM record for a captured booking."""
    crm = config["configurable"]["crm"]

    try:
        page = await crm.create_page(state["draft"])
        state["crm_record_id"] = page.get("id")
        logger.info(f"CRM record created: {state['crm_record_id']}")

    except NotionError as e:
        error_msg = f"CRM operation failed: {e}"
        if e.detail:
            error_msg = f"{error_msg}: {e.detail}"
        logger.error(error_msg)
        state.setdefault("errors", []).append(error_msg)
        state["crm_record_id"] = None

    except Exception as e:
        error_msg = f"CRM operation failed: {str(e)}"
        logger.error(error_msg)
        state.setdefault("errors", []).append(error_msg)
        state["crm_record_id"] = None

    return state
