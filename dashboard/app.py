"""
Streamlit dashboard. Run with: streamlit run dashboard/app.py
"""

import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), 'src'))

from analytics import REPORTS, run_report, DAY_ORDER

st.set_page_config(page_title="UPI Transaction Analytics", page_icon="📊",
                   layout="wide", initial_sidebar_state="expanded")

st.markdown("""
<style>
    .main-header { font-size: 2.2rem; font-weight: 700; color: #1F4E79; margin-bottom: 0.5rem; }
    .sub-header  { font-size: 1.1rem; color: #6b7280; margin-bottom: 1.5rem; }
</style>
""", unsafe_allow_html=True)


@st.cache_data
def load_data():
    base_dir = os.path.dirname(os.path.dirname(__file__))
    processed = os.path.join(base_dir, 'data', 'processed', 'upi_transactions_processed.csv')
    if os.path.exists(processed):
        return pd.read_csv(processed, parse_dates=['timestamp'])
    st.error("No data found. Run the pipeline first.")
    st.stop()


@st.cache_data
def cached_report(name, df):
    return run_report(name, df)


def show_report(name, df):
    st.subheader(REPORTS[name]['title'])
    result = cached_report(name, df)
    st.dataframe(result, use_container_width=True)
    return result


def render_merchants(df):
    st.markdown('<p class="main-header">Top Merchant & Bank Patterns</p>', unsafe_allow_html=True)

    c1, c2 = st.columns(2)
    with c1:
        by_state = show_report('top_merchants_by_state', df)
    with c2:
        show_report('top_merchants_by_age_group', df)

    if len(by_state):
        fig = px.bar(by_state, x='sender_state', y='revenue', color='merchant_category',
                     barmode='group', title='Top 3 Merchant Categories by Revenue, per State')
        fig.update_layout(height=420, template='plotly_white')
        st.plotly_chart(fig, use_container_width=True)

    show_report('preferred_devices_by_age_group', df)


def render_fraud(df):
    st.markdown('<p class="main-header">Fraud & Risk Analysis</p>', unsafe_allow_html=True)

    c1, c2 = st.columns(2)
    with c1:
        states = show_report('fraud_rate_by_state', df)
    with c2:
        if len(states):
            fig = px.bar(states.sort_values('fraud_percentage'), x='fraud_percentage', y='sender_state',
                         orientation='h', title='Fraud % by State',
                         color='fraud_percentage', color_continuous_scale='RdYlGn_r')
            fig.update_layout(height=400)
            st.plotly_chart(fig, use_container_width=True)

    banks = show_report('bank_risk_categories', df)
    if len(banks):
        fig = px.bar(banks, x='sender_bank', y='fraud_rate', color='risk_category',
                     title='Fraud Rate by Sender Bank',
                     color_discrete_map={'High Risk': '#ef4444', 'Medium Risk': '#f59e0b',
                                         'Low Risk': '#22c55e'})
        st.plotly_chart(fig, use_container_width=True)

    times = show_report('fraud_by_time_of_day', df)
    if len(times):
        fig = go.Figure()
        fig.add_trace(go.Bar(name='Weekday', x=times['time_of_day'], y=times['fraud_weekday_percent'],
                             marker_color='#667eea'))
        fig.add_trace(go.Bar(name='Weekend', x=times['time_of_day'], y=times['fraud_weekend_percent'],
                             marker_color='#f093fb'))
        fig.update_layout(barmode='group', title='Fraud % by Time of Day',
                          height=380, template='plotly_white')
        st.plotly_chart(fig, use_container_width=True)

    c1, c2 = st.columns(2)
    with c1:
        show_report('top_fraud_bank_pairs', df)
    with c2:
        show_report('fraud_by_amount_band', df)


def render_devices(df):
    st.markdown('<p class="main-header">Device & Network Usage</p>', unsafe_allow_html=True)

    success = show_report('device_network_success', df)
    if len(success):
        pivot = success.pivot(index='device_type', columns='network_type', values='success').fillna(0)
        fig = px.imshow(pivot, color_continuous_scale='Blues', text_auto=True,
                        title='Successful Transactions (Device x Network)')
        fig.update_layout(height=350)
        st.plotly_chart(fig, use_container_width=True)

    show_report('top_merchants_by_device', df)


def render_behaviour(df):
    st.markdown('<p class="main-header">Behavioral & Time-Based Insights</p>', unsafe_allow_html=True)

    hours = show_report('peak_hours_by_day', df)
    if len(hours):
        fig = px.scatter(hours, x='hour_of_day', y='day_of_week', size='txn_count', color='hour_label',
                         category_orders={'day_of_week': DAY_ORDER},
                         title='Peak and Active Hours')
        fig.update_layout(height=400, template='plotly_white')
        st.plotly_chart(fig, use_container_width=True)

    affinity = show_report('age_group_affinity', df)
    if len(affinity):
        pivot = affinity.pivot(index='sender_age_group', columns='receiver_age_group',
                               values='percent_of_total_txn').fillna(0)
        fig = px.imshow(pivot, color_continuous_scale='YlOrRd', text_auto=True,
                        title='Share of Transactions (Sender x Receiver Age Group, %)')
        st.plotly_chart(fig, use_container_width=True)


def render_trends(df):
    st.markdown('<p class="main-header">Time Series & Trend Analysis</p>', unsafe_allow_html=True)

    moving = show_report('monthly_spend_moving_avg', df)
    if len(moving):
        fig = px.line(moving, x='txn_month', y='moving_avg', color='sender_age_group', markers=True,
                      title='Moving Average of Monthly Spend')
        fig.update_layout(height=400, template='plotly_white')
        st.plotly_chart(fig, use_container_width=True)

    cumulative = show_report('monthly_spend_cumulative', df)
    if len(cumulative):
        fig = px.area(cumulative, x='txn_month', y='cumulative_spend', color='sender_age_group',
                      title='Cumulative Monthly Spend')
        fig.update_layout(height=400, template='plotly_white')
        st.plotly_chart(fig, use_container_width=True)


def render_types(df):
    st.markdown('<p class="main-header">Transaction Type & Status</p>', unsafe_allow_html=True)

    c1, c2 = st.columns(2)
    with c1:
        show_report('success_rate_by_type', df)
    with c2:
        show_report('fraud_rate_by_status', df)

    show_report('top_spender_by_type', df)


def main():
    st.sidebar.title("UPI Transaction Analytics")
    st.sidebar.caption("17 reports over one transactions table")
    st.sidebar.divider()

    page = st.sidebar.radio("Navigate", [
        'Merchants',
        'Fraud & Risk',
        'Devices & Networks',
        'Behaviour',
        'Trends',
        'Types & Status',
    ])

    df = load_data()

    st.sidebar.divider()
    st.sidebar.subheader("Filters")
    states = ['All'] + sorted(df['sender_state'].dropna().unique().tolist())
    sel_state = st.sidebar.selectbox("State", states)
    if sel_state != 'All':
        df = df[df['sender_state'] == sel_state]

    banks = ['All'] + sorted(df['sender_bank'].dropna().unique().tolist())
    sel_bank = st.sidebar.selectbox("Bank", banks)
    if sel_bank != 'All':
        df = df[df['sender_bank'] == sel_bank]

    st.sidebar.divider()
    st.sidebar.caption(f"**{len(df):,}** transactions loaded")
    st.sidebar.caption(f"Fraud: **{df['fraud_flag'].sum():,}** ({df['fraud_flag'].mean()*100:.2f}%)")

    if page == 'Merchants':              render_merchants(df)
    elif page == 'Fraud & Risk':         render_fraud(df)
    elif page == 'Devices & Networks':   render_devices(df)
    elif page == 'Behaviour':            render_behaviour(df)
    elif page == 'Trends':               render_trends(df)
    elif page == 'Types & Status':       render_types(df)


if __name__ == '__main__':
    main()
