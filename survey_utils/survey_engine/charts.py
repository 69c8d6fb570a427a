# survey_utils/survey_engine/charts.py
"""
Altair Chart Builders for the Survey Dashboard

All visualization components using Altair:
- KPI summary cards (using st.metric)
- Distribution bars (district / block / village)
- Year-wise population and migration trends
- Population pyramid
- GP finance stacked bars
- Road infrastructure grouped bars and health facility status
- GP x Financial Year coverage heatmap
"""

import logging
from typing import List

import altair as alt
import pandas as pd
import streamlit as st

from .constants import (
    CHART_HEIGHT,
    CHART_WIDTH,
    COLORS,
    FINANCE_FIELDS,
    FINANCE_LABELS,
    HEALTH_FACILITY_LABELS,
    HEALTH_STATUSES,
    ROAD_FLOAT_FIELDS,
    ROAD_LABELS,
)
from .formatters import format_hectares, format_indian_currency, format_indian_number, format_percentage
from .grouping import Distribution
from .metrics import AggregateMetrics

logger = logging.getLogger(__name__)


class SurveyCharts:
    """
    Chart builders for the survey dashboard.

    All methods are static - can be called without instantiation.

    Usage:
        SurveyCharts.render_kpi_cards(metrics)
        chart = SurveyCharts.build_distribution_chart(distribution)
        st.altair_chart(chart, use_container_width=True)
    """

    # =========================================================================
    # KPI CARDS
    # =========================================================================

    @staticmethod
    def render_kpi_cards(metrics: AggregateMetrics):
        """Render headline totals as two rows of st.metric cards."""
        with st.container(border=True):
            st.markdown("**👥 PEOPLE & SERVICES**")
            col1, col2, col3, col4 = st.columns(4)
            col1.metric("Population", format_indian_number(metrics.total_population))
            col2.metric("Households", format_indian_number(metrics.total_households))
            col3.metric(
                "Schools",
                format_indian_number(metrics.total_schools),
                help=f"{format_indian_number(metrics.total_teachers)} teachers, "
                     f"{format_indian_number(metrics.total_students)} students"
            )
            col4.metric(
                "Migrants",
                format_indian_number(metrics.total_migrants),
                help="Seasonal + permanent, male + female"
            )

        with st.container(border=True):
            st.markdown("**🏛️ PANCHAYATS & RESOURCES**")
            col1, col2, col3, col4 = st.columns(4)
            col1.metric(
                "Gram Panchayats",
                format_indian_number(metrics.gp_count),
                help=f"{metrics.record_count} submissions, "
                     f"{format_percentage(metrics.data_submission_rate)} submission rate"
            )
            col2.metric("Total Revenue", format_indian_currency(metrics.total_revenue))
            col3.metric("Water Bodies", format_indian_number(metrics.total_water_bodies))
            col4.metric(
                "Agricultural Area",
                format_hectares(metrics.total_agricultural_area),
                help=f"Forest area: {format_hectares(metrics.total_forest_area)}"
            )

    # =========================================================================
    # DISTRIBUTION
    # =========================================================================

    @staticmethod
    def build_distribution_chart(distribution: Distribution) -> alt.Chart:
        """Grouped bars of population and households per row of the distribution."""
        rows = distribution.rows
        if rows.empty:
            return SurveyCharts._empty_chart("No data available")

        data = rows.melt(
            id_vars=['name'],
            value_vars=['population', 'households'],
            var_name='Metric',
            value_name='Count'
        )
        data['Metric'] = data['Metric'].map({'population': 'Population', 'households': 'Households'})

        color_scale = alt.Scale(
            domain=['Population', 'Households'],
            range=[COLORS['population'], COLORS['households']]
        )
        order = rows['name'].tolist()

        return alt.Chart(data).mark_bar().encode(
            x=alt.X('name:N', sort=order, title=None, axis=alt.Axis(labelAngle=-45)),
            y=alt.Y('Count:Q', title='Count', axis=alt.Axis(format='~s')),
            color=alt.Color('Metric:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            xOffset='Metric:N',
            tooltip=[
                alt.Tooltip('name:N', title='Name'),
                alt.Tooltip('Metric:N', title='Metric'),
                alt.Tooltip('Count:Q', title='Count', format=',.0f')
            ]
        ).properties(
            width=CHART_WIDTH,
            height=CHART_HEIGHT,
            title=distribution.title
        )

    # =========================================================================
    # YEAR SERIES
    # =========================================================================

    @staticmethod
    def build_population_trend_chart(year_df: pd.DataFrame, title: str = "📈 Population by Year") -> alt.Chart:
        """Male / female lines per financial year."""
        if year_df.empty:
            return SurveyCharts._empty_chart("No data available")

        data = year_df.melt(
            id_vars=['financial_year'],
            value_vars=['male', 'female'],
            var_name='Gender',
            value_name='Population'
        )
        data['Gender'] = data['Gender'].str.title()

        color_scale = alt.Scale(domain=['Male', 'Female'], range=[COLORS['male'], COLORS['female']])

        return alt.Chart(data).mark_line(point=True, strokeWidth=2).encode(
            x=alt.X('financial_year:N', sort='ascending', title='Financial Year'),
            y=alt.Y('Population:Q', title='Population', axis=alt.Axis(format='~s')),
            color=alt.Color('Gender:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            tooltip=[
                alt.Tooltip('financial_year:N', title='Year'),
                alt.Tooltip('Gender:N'),
                alt.Tooltip('Population:Q', format=',.0f')
            ]
        ).properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)

    @staticmethod
    def build_migration_trend_chart(year_df: pd.DataFrame, title: str = "🚶 Migration by Year") -> alt.Chart:
        """Stacked bars of seasonal / permanent x male / female migrants per year."""
        if year_df.empty:
            return SurveyCharts._empty_chart("No data available")

        labels = {
            'seasonal_male': 'Seasonal Male',
            'seasonal_female': 'Seasonal Female',
            'permanent_male': 'Permanent Male',
            'permanent_female': 'Permanent Female',
        }
        data = year_df.melt(
            id_vars=['financial_year'],
            value_vars=list(labels),
            var_name='Type',
            value_name='Migrants'
        )
        data['Type'] = data['Type'].map(labels)

        return alt.Chart(data).mark_bar().encode(
            x=alt.X('financial_year:N', sort='ascending', title='Financial Year'),
            y=alt.Y('Migrants:Q', stack='zero', title='Migrants'),
            color=alt.Color(
                'Type:N',
                scale=alt.Scale(
                    domain=list(labels.values()),
                    range=[COLORS['seasonal'], COLORS['female'], COLORS['permanent'], COLORS['male']]
                ),
                legend=alt.Legend(orient='bottom')
            ),
            tooltip=[
                alt.Tooltip('financial_year:N', title='Year'),
                alt.Tooltip('Type:N'),
                alt.Tooltip('Migrants:Q', format=',.0f')
            ]
        ).properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)

    # =========================================================================
    # POPULATION PYRAMID
    # =========================================================================

    @staticmethod
    def build_population_pyramid(pyramid_df: pd.DataFrame, title: str = "👥 Population Pyramid") -> alt.Chart:
        """Horizontal bars, male to the left of the axis and female to the right."""
        if pyramid_df.empty or (pyramid_df[['male', 'female']].sum().sum() == 0):
            return SurveyCharts._empty_chart("No age data available")

        data = pyramid_df.melt(
            id_vars=['age_group'],
            value_vars=['male', 'female'],
            var_name='Gender',
            value_name='Population'
        )
        data['Gender'] = data['Gender'].str.title()
        data['Signed'] = data.apply(
            lambda r: -r['Population'] if r['Gender'] == 'Male' else r['Population'], axis=1
        )
        order = list(reversed(pyramid_df['age_group'].tolist()))

        return alt.Chart(data).mark_bar().encode(
            y=alt.Y('age_group:N', sort=order, title='Age Group'),
            x=alt.X('Signed:Q', title='Population', axis=alt.Axis(format='~s')),
            color=alt.Color(
                'Gender:N',
                scale=alt.Scale(domain=['Male', 'Female'], range=[COLORS['male'], COLORS['female']]),
                legend=alt.Legend(orient='bottom')
            ),
            tooltip=[
                alt.Tooltip('age_group:N', title='Age Group'),
                alt.Tooltip('Gender:N'),
                alt.Tooltip('Population:Q', format=',.0f')
            ]
        ).properties(width=CHART_WIDTH, height=250, title=title)

    # =========================================================================
    # FINANCES
    # =========================================================================

    @staticmethod
    def build_finance_chart(
        finance_df: pd.DataFrame,
        top_n: int = 15,
        title: str = "💰 Panchayat Finances by GP"
    ) -> alt.Chart:
        """Stacked revenue sources for the top GPs by total revenue."""
        if finance_df.empty or finance_df['total_revenue'].sum() == 0:
            return SurveyCharts._empty_chart("No finance data available")

        top = finance_df.head(top_n)
        labels: List[str] = [FINANCE_LABELS[f] for f in FINANCE_FIELDS]

        data = top.melt(
            id_vars=['gp_name'],
            value_vars=labels,
            var_name='Source',
            value_name='Amount'
        )

        return alt.Chart(data).mark_bar().encode(
            x=alt.X('gp_name:N', sort=top['gp_name'].tolist(), title=None, axis=alt.Axis(labelAngle=-45)),
            y=alt.Y('Amount:Q', stack='zero', title='Amount (₹)', axis=alt.Axis(format='~s')),
            color=alt.Color(
                'Source:N',
                scale=alt.Scale(
                    domain=labels,
                    range=[COLORS['cfc'], COLORS['sfc'], COLORS['own_sources'], COLORS['mgnregs']]
                ),
                legend=alt.Legend(orient='bottom')
            ),
            tooltip=[
                alt.Tooltip('gp_name:N', title='GP'),
                alt.Tooltip('Source:N'),
                alt.Tooltip('Amount:Q', format=',.0f')
            ]
        ).properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)

    # =========================================================================
    # ROADS & HEALTH
    # =========================================================================

    @staticmethod
    def build_road_chart(
        road_df: pd.DataFrame,
        label_column: str = 'gp_name',
        top_n: int = 15,
        title: str = "🛣️ Road Infrastructure (km)"
    ) -> alt.Chart:
        """
        Grouped bars of the four road measures.

        Args:
            road_df: road_breakdown() output, or snapshot 'by_village' rows
                renamed with ROAD_LABELS
            label_column: Column naming each bar group (gp_name or village)
        """
        labels = [ROAD_LABELS[f] for f in ROAD_FLOAT_FIELDS]
        if road_df.empty or road_df[labels].to_numpy().sum() == 0:
            return SurveyCharts._empty_chart("No road data available")

        top = road_df.head(top_n)
        data = top.melt(id_vars=[label_column], value_vars=labels, var_name='Measure', value_name='Length')

        return alt.Chart(data).mark_bar().encode(
            x=alt.X(f'{label_column}:N', sort=top[label_column].tolist(), title=None, axis=alt.Axis(labelAngle=-45)),
            xOffset='Measure:N',
            y=alt.Y('Length:Q', title='Length (km)'),
            color=alt.Color(
                'Measure:N',
                scale=alt.Scale(
                    domain=labels,
                    range=[COLORS['cc_road'], COLORS['cc_road_required'], COLORS['road_repair'], COLORS['kuchha_road']]
                ),
                legend=alt.Legend(orient='bottom')
            ),
            tooltip=[
                alt.Tooltip(f'{label_column}:N', title='Name'),
                alt.Tooltip('Measure:N'),
                alt.Tooltip('Length:Q', format=',.2f')
            ]
        ).properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)

    @staticmethod
    def build_facility_status_chart(health: dict, title: str = "🏥 Health Facility Status") -> alt.Chart:
        """Stacked status counts per facility type, from a snapshot 'health' section."""
        if not health or health.get('total_facilities', 0) == 0:
            return SurveyCharts._empty_chart("No facilities have been added yet")

        rows = [
            {'Facility': HEALTH_FACILITY_LABELS[name], 'Status': status, 'Count': count}
            for name, counts in health['status_counts'].items()
            for status, count in counts.items()
        ]

        return alt.Chart(pd.DataFrame(rows)).mark_bar().encode(
            x=alt.X('Facility:N', sort=list(HEALTH_FACILITY_LABELS.values()), title=None),
            y=alt.Y('Count:Q', stack='zero', title='Number of Facilities', axis=alt.Axis(tickMinStep=1)),
            color=alt.Color(
                'Status:N',
                scale=alt.Scale(
                    domain=HEALTH_STATUSES,
                    range=[
                        COLORS['fully_functional'], COLORS['partially_functional'],
                        COLORS['needs_repair'], COLORS['non_operational'],
                    ]
                ),
                legend=alt.Legend(orient='bottom')
            ),
            tooltip=['Facility:N', 'Status:N', 'Count:Q']
        ).properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)

    # =========================================================================
    # COVERAGE
    # =========================================================================

    @staticmethod
    def build_coverage_heatmap(coverage_df: pd.DataFrame, title: str = "🗓️ Data Coverage") -> alt.Chart:
        """
        GP x Financial Year heatmap of completion percentage.

        Args:
            coverage_df: Long-form output of coverage_long()
        """
        if coverage_df.empty:
            return SurveyCharts._empty_chart("No submissions yet")

        height = max(200, 22 * coverage_df['gp_name'].nunique())

        base = alt.Chart(coverage_df).encode(
            x=alt.X('financial_year:N', sort='ascending', title='Financial Year'),
            y=alt.Y('gp_name:N', sort='ascending', title=None),
        )

        rect = base.mark_rect(stroke='white').encode(
            color=alt.Color(
                'percentage:Q',
                scale=alt.Scale(domain=[0, 100], range=[COLORS['missing'], COLORS['complete']]),
                legend=alt.Legend(title='Completion %')
            ),
            tooltip=[
                alt.Tooltip('gp_name:N', title='GP'),
                alt.Tooltip('financial_year:N', title='Year'),
                alt.Tooltip('percentage:Q', title='Completion %', format='.1f'),
                alt.Tooltip('last_touched:N', title='Last Updated')
            ]
        )

        text = base.mark_text(fontSize=10, color=COLORS['text_dark']).encode(
            text=alt.Text('percentage:Q', format='.0f')
        )

        return alt.layer(rect, text).properties(width=CHART_WIDTH, height=height, title=title)

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _empty_chart(message: str = "No data available") -> alt.Chart:
        """Create an empty chart with a message."""
        return alt.Chart(pd.DataFrame({'note': [message]})).mark_text(
            text=message,
            fontSize=16,
            color=COLORS['text_light']
        ).properties(
            width=CHART_WIDTH,
            height=200
        )
