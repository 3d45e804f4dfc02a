"""
Services Package
================

Business logic layer for savings group cycles and funds.

Routes call these services; they never change cycle or fund rows directly.
"""

from app.services.cycle_service import (
    create_cycle,
    activate_cycle,
    update_cycle,
    share_out_cycle,
    share_out_close_cycle,
    CycleError
)

from app.services.fund_service import (
    create_fund,
    update_fund,
    delete_fund,
    copy_funds_from_cycle,
    FundError
)

from app.services.cycle_read_service import (
    get_latest_cycle,
    retrieve_latest_cycle,
    retrieve_cycle_template
)

from app.services.fund_read_service import (
    retrieve_fund_template,
    retrieve_latest_cycle_funds,
    retrieve_fund
)
