#!/usr/bin/env python3
"""MCP Server for the Finance Engine.

This server exposes the tax, equity, projection and homebuyer calculations
as MCP tools, allowing AI assistants to answer personal-finance questions.
"""

import os
import sys
import json
import asyncio
from typing import Any

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from tools import FinanceEngineTools


# Create the MCP server
server = Server("finance-engine")

# Global tools instance (initialized on first call)
tools: FinanceEngineTools | None = None


def get_tools() -> FinanceEngineTools:
    """Get or initialize the tools instance."""
    global tools
    if tools is None:
        # Threshold inflation for projected years can be set via FINANCE_ENGINE_INFLATION
        inflation = float(os.environ.get('FINANCE_ENGINE_INFLATION', '0') or 0)
        base_path = os.path.join(os.path.dirname(__file__), '..')
        tools = FinanceEngineTools(base_path, inflation)
    return tools


# Common parameter schemas
YEAR_PARAM = {"type": "integer", "description": "Tax year of the tables to use. Use list_tax_years to see available years."}
STATUS_PARAM = {"type": "string", "enum": ["single", "married"], "description": "Filing status"}
INCOME_PARAM = {"type": "number", "description": "Ordinary income (wages, bonus, vested RSUs) before the standard deduction"}


def _schema(properties: dict, required: list) -> dict:
    return {"type": "object", "properties": properties, "required": required}


def _number(description: str) -> dict:
    return {"type": "number", "description": description}


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available finance engine tools."""
    return [
        Tool(
            name="list_tax_years",
            description="List the tax years and filing statuses the reference tables cover.",
            inputSchema=_schema({}, [])
        ),
        Tool(
            name="compute_liability",
            description="Compute federal liability: regular tax, AMT, long-term capital gains tax and NIIT, with the effective rate.",
            inputSchema=_schema({
                "year": YEAR_PARAM,
                "filing_status": STATUS_PARAM,
                "ordinary_income": INCOME_PARAM,
                "iso_spread": _number("ISO bargain element (AMT preference income)"),
                "capital_gains": _number("Long-term capital gains"),
                "investment_income": _number("Net investment income for NIIT; defaults to capital gains"),
            }, ["year", "filing_status", "ordinary_income"])
        ),
        Tool(
            name="amt_safe_spread",
            description="Find the largest ISO spread that can be exercised this year before AMT applies.",
            inputSchema=_schema({
                "year": YEAR_PARAM,
                "filing_status": STATUS_PARAM,
                "ordinary_income": INCOME_PARAM,
                "capital_gains": _number("Long-term capital gains"),
                "upper_bound": _number("Search ceiling for the spread (default 1,000,000)"),
            }, ["year", "filing_status", "ordinary_income"])
        ),
        Tool(
            name="withholding_gap",
            description="Compare the tax an extra slice of income adds against flat supplemental withholding and suggest a set-aside.",
            inputSchema=_schema({
                "year": YEAR_PARAM,
                "filing_status": STATUS_PARAM,
                "ordinary_income": INCOME_PARAM,
                "slice_amount": _number("Additional income"),
                "slice_kind": {"type": "string", "enum": ["ordinary", "preference", "capital_gains"],
                               "description": "How the slice is taxed (default ordinary)"},
                "withholding_rate": _number("Flat withholding rate, e.g. 0.22 (defaults to the year's supplemental rate)"),
            }, ["year", "filing_status", "ordinary_income", "slice_amount"])
        ),
        Tool(
            name="vest_events",
            description="Walk RSU, NSO, ISO and ESPP events in date order and report the tax each adds and the cash to set aside.",
            inputSchema=_schema({
                "year": YEAR_PARAM,
                "filing_status": STATUS_PARAM,
                "ordinary_income": INCOME_PARAM,
                "events": {
                    "type": "array",
                    "items": {"type": "object"},
                    "description": "Events with type (RSU/NSO/ISO/ESPP), date (YYYY-MM-DD), shares, grantPrice, vestPrice, currentPrice",
                },
                "withholding_rate": _number("Flat withholding rate (defaults to the year's supplemental rate)"),
            }, ["year", "filing_status", "ordinary_income", "events"])
        ),
        Tool(
            name="iso_vs_nso",
            description="Compare the AMT triggered by exercising ISOs with the ordinary tax due when exercising NSOs.",
            inputSchema=_schema({
                "year": YEAR_PARAM,
                "filing_status": STATUS_PARAM,
                "ordinary_income": INCOME_PARAM,
                "events": {
                    "type": "array",
                    "items": {"type": "object"},
                    "description": "ISO events use currentPrice, NSO events use vestPrice as the exercise-day price; both need grantPrice and shares",
                },
            }, ["year", "filing_status", "ordinary_income", "events"])
        ),
        Tool(
            name="concentration_risk",
            description="Rate single-stock concentration against net worth and suggest a diversification timeline.",
            inputSchema=_schema({
                "company_stock_value": _number("Value of the company stock held"),
                "total_net_worth": _number("Total net worth including the stock"),
            }, ["company_stock_value", "total_net_worth"])
        ),
        Tool(
            name="project_growth",
            description="Project a portfolio year by year with annual contributions, optional fee drag and an optional target balance.",
            inputSchema=_schema({
                "initial": _number("Starting balance"),
                "annual_contribution": _number("Added at the end of each year; negative for withdrawals"),
                "years": {"type": "integer", "description": "Number of years"},
                "expected_return": _number("Annual return in percent, e.g. 7"),
                "annual_fee": _number("Annual fees in percent"),
                "target": _number("Balance milestone to look for"),
            }, ["initial", "annual_contribution", "years", "expected_return"])
        ),
        Tool(
            name="fee_impact",
            description="Lifetime cost of expense ratios, advisory fees and plan fees compared with a fee-free portfolio and with low-cost index funds.",
            inputSchema=_schema({
                "portfolio": _number("Starting balance"),
                "annual_contribution": _number("Annual contribution"),
                "years": {"type": "integer", "description": "Years until retirement"},
                "expected_return": _number("Annual return in percent"),
                "expense_ratio": _number("Fund expense ratio in percent"),
                "advisory_fee": _number("Advisory (AUM) fee in percent"),
                "plan_fee": _number("401(k) plan administration fee in percent"),
            }, ["portfolio", "annual_contribution", "years", "expected_return"])
        ),
        Tool(
            name="amortized_payment",
            description="Level monthly mortgage payment with total paid and total interest.",
            inputSchema=_schema({
                "principal": _number("Loan amount"),
                "annual_rate": _number("Annual interest rate in percent"),
                "term_years": {"type": "integer", "description": "Loan term in years (default 30)"},
            }, ["principal", "annual_rate"])
        ),
        Tool(
            name="true_monthly_cost",
            description="Monthly cost of owning a home: mortgage, property tax, insurance, PMI, HOA, maintenance and utilities.",
            inputSchema=_schema({
                "home_price": _number("Purchase price"),
                "down_payment_percent": _number("Down payment in percent of price"),
                "mortgage_rate": _number("Mortgage rate in percent"),
                "property_tax_rate": _number("Property tax rate in percent of price"),
                "insurance_annual": _number("Homeowner's insurance per year"),
                "hoa_monthly": _number("HOA dues per month"),
                "utilities_monthly": _number("Utilities per month"),
                "maintenance_percent": _number("Maintenance per year in percent of price"),
            }, ["home_price", "down_payment_percent", "mortgage_rate"])
        ),
        Tool(
            name="affordability",
            description="Maximum home price whose payment fits the 28/36 rule.",
            inputSchema=_schema({
                "annual_income": _number("Gross annual income"),
                "monthly_debts": _number("Existing monthly debt payments"),
                "down_payment_percent": _number("Down payment in percent of price"),
                "mortgage_rate": _number("Mortgage rate in percent"),
                "property_tax_rate": _number("Property tax rate in percent of price"),
                "insurance_annual": _number("Homeowner's insurance per year"),
            }, ["annual_income", "monthly_debts", "down_payment_percent", "mortgage_rate"])
        ),
        Tool(
            name="rent_vs_buy",
            description="Compare buying a home against renting and investing the down payment; reports the break-even year and a recommendation.",
            inputSchema=_schema({
                "home_price": _number("Purchase price"),
                "down_payment_percent": _number("Down payment in percent of price"),
                "mortgage_rate": _number("Mortgage rate in percent"),
                "monthly_rent": _number("Current monthly rent"),
                "rent_growth": _number("Annual rent growth in percent"),
                "appreciation": _number("Annual home appreciation in percent"),
                "investment_return": _number("Annual return on invested cash in percent"),
                "years": {"type": "integer", "description": "Comparison horizon in years (default 30)"},
            }, ["home_price", "down_payment_percent", "mortgage_rate", "monthly_rent"])
        ),
        Tool(
            name="irmaa_tier",
            description="Medicare Part B IRMAA tier, surcharge and what dropping one tier would save.",
            inputSchema=_schema({
                "year": YEAR_PARAM,
                "filing_status": STATUS_PARAM,
                "magi": _number("Modified adjusted gross income from two years prior"),
            }, ["year", "filing_status", "magi"])
        ),
        Tool(
            name="roth_eligibility",
            description="How much can be contributed directly to a Roth IRA and whether a backdoor Roth is needed.",
            inputSchema=_schema({
                "year": YEAR_PARAM,
                "filing_status": STATUS_PARAM,
                "magi": _number("Modified adjusted gross income"),
                "mega_backdoor_available": {"type": "boolean", "description": "Whether the 401(k) allows after-tax contributions"},
            }, ["year", "filing_status", "magi"])
        ),
        Tool(
            name="pro_rata",
            description="Taxable share of a backdoor Roth conversion under the pro-rata rule.",
            inputSchema=_schema({
                "pretax_ira_balance": _number("Pre-tax balance across all traditional, SEP and SIMPLE IRAs"),
                "conversion_amount": _number("After-tax contribution being converted"),
                "marginal_rate": _number("Marginal rate as a fraction, e.g. 0.24"),
            }, ["pretax_ira_balance", "conversion_amount"])
        ),
        Tool(
            name="hsa",
            description="HSA contribution limit and the value of investing the account instead of spending it each year.",
            inputSchema=_schema({
                "year": YEAR_PARAM,
                "coverage": {"type": "string", "enum": ["self", "family"], "description": "HDHP coverage type"},
                "age": {"type": "integer", "description": "Current age"},
                "current_balance": _number("Current HSA balance"),
                "annual_medical_expenses": _number("Expected medical expenses per year"),
                "expected_return": _number("Annual return in percent"),
                "retirement_age": {"type": "integer", "description": "Planned retirement age"},
                "annual_contribution": _number("Annual contribution (defaults to the limit)"),
            }, ["year", "coverage", "age"])
        ),
        Tool(
            name="list_programs",
            description="List the saved programs (folders in input-parameters) and the report modes they can be run with.",
            inputSchema=_schema({}, [])
        ),
        Tool(
            name="get_program_report",
            description="Run a saved program's spec.json through one report (Liability, VestCalendar, Growth, Fees, Homebuyer, Medicare, Roth, HSA).",
            inputSchema=_schema({
                "program": {"type": "string", "description": "The program name (folder in input-parameters)"},
                "mode": {"type": "string", "description": "Report mode"},
            }, ["program", "mode"])
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        fe_tools = get_tools()

        if name == "list_tax_years":
            result = fe_tools.list_tax_years()
        elif name == "compute_liability":
            result = fe_tools.compute_liability(**arguments)
        elif name == "amt_safe_spread":
            result = fe_tools.amt_safe_spread(**arguments)
        elif name == "withholding_gap":
            result = fe_tools.withholding_gap(**arguments)
        elif name == "vest_events":
            result = fe_tools.vest_events(**arguments)
        elif name == "iso_vs_nso":
            result = fe_tools.iso_vs_nso(**arguments)
        elif name == "concentration_risk":
            result = fe_tools.concentration_risk(**arguments)
        elif name == "project_growth":
            result = fe_tools.project_growth(**arguments)
        elif name == "fee_impact":
            result = fe_tools.fee_impact(**arguments)
        elif name == "amortized_payment":
            result = fe_tools.amortized_payment(**arguments)
        elif name == "true_monthly_cost":
            result = fe_tools.true_monthly_cost(**arguments)
        elif name == "affordability":
            result = fe_tools.affordability(**arguments)
        elif name == "rent_vs_buy":
            result = fe_tools.rent_vs_buy(**arguments)
        elif name == "irmaa_tier":
            result = fe_tools.irmaa_tier(**arguments)
        elif name == "roth_eligibility":
            result = fe_tools.roth_eligibility(**arguments)
        elif name == "pro_rata":
            result = fe_tools.pro_rata(**arguments)
        elif name == "hsa":
            result = fe_tools.hsa(**arguments)
        elif name == "list_programs":
            result = fe_tools.list_programs()
        elif name == "get_program_report":
            result = fe_tools.get_program_report(arguments["program"], arguments["mode"])
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(
            type="text",
            text=json.dumps(result, indent=2, default=str)
        )]
    except Exception as e:
        return [TextContent(
            type="text",
            text=json.dumps({"error": str(e)}, indent=2)
        )]


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    asyncio.run(main())
