import plotly.graph_objects as go
import plotly.express as px
from pathlib import Path
from sklearn.metrics import confusion_matrix


class InteractivePlotter:
    def __init__(self, output_dir):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def plot_metrics_table(self, metrics, model_label, filename=None):
        """Render one pipeline's (metric, value) pairs as an HTML table."""
        names = [name for name, _ in metrics]
        values = [f"{value:.1f}" for _, value in metrics]
        table = go.Table(
            header=dict(values=['Metric', 'Value (%)'], fill_color='#2A3F5F', font=dict(color='white'),
                        align='left'),
            cells=dict(values=[names, values], align='left'),
        )
        fig = go.Figure(data=[table])
        fig.update_layout(title_text=f"Test Metrics: {model_label}", height=320)

        if filename is None:
            safe_name = "".join([c for c in model_label if c.isalnum() or c in ('-', '_')]).strip()
            filename = f"metrics_{safe_name}.html"
        path = self.output_dir / filename
        fig.write_html(str(path))
        return path

    def plot_model_comparison(self, comparison_df, filename="model_comparison.html"):
        """Grouped bars: one group per metric, one bar per model."""
        if comparison_df.empty:
            return None
        plot_df = comparison_df.melt(id_vars='Model', var_name='Metric', value_name='Value')
        fig = px.bar(plot_df, x='Metric', y='Value', color='Model', barmode='group', text='Value',
                     title="Test Performance by Model")
        fig.update_traces(texttemplate='%{text:.1f}', textposition='outside')
        fig.update_yaxes(range=[0, 105], title='Percent')
        path = self.output_dir / filename
        fig.write_html(str(path))
        return path

    def plot_tuning_results(self, tuning_frame, metric, model_label, filename=None):
        """Mean cross-validated score per grid point, with fold std as error bars."""
        mean_col, std_col = f'mean_{metric}', f'std_{metric}'
        param_cols = [c for c in tuning_frame.columns
                      if c not in ('grid_index', 'n_failed') and not c.startswith(('mean_', 'std_'))]
        hover = tuning_frame[param_cols].astype(str).agg(', '.join, axis=1) if param_cols else None

        fig = go.Figure(go.Scatter(
            x=tuning_frame['grid_index'], y=tuning_frame[mean_col],
            error_y=dict(type='data', array=tuning_frame[std_col].fillna(0)),
            mode='markers+lines', text=hover, name=metric,
        ))
        best = tuning_frame[mean_col].idxmax() if tuning_frame[mean_col].notna().any() else None
        if best is not None:
            fig.add_trace(go.Scatter(x=[tuning_frame.loc[best, 'grid_index']], y=[tuning_frame.loc[best, mean_col]],
                                     mode='markers', marker=dict(size=14, color='red', symbol='star'),
                                     name='selected'))
        fig.update_layout(title=f"Grid Search: {model_label} ({metric})", xaxis_title='Grid point',
                          yaxis_title=f"Mean CV {metric}")

        if filename is None:
            safe_name = "".join([c for c in model_label if c.isalnum()]).strip()
            filename = f"tuning_{safe_name}.html"
        path = self.output_dir / filename
        fig.write_html(str(path))
        return path

    def plot_confusion_matrix(self, y_true, y_pred, class_names=("No", "Yes"), title="Confusion Matrix",
                              filename="confusion_matrix.html"):
        cm = confusion_matrix(y_true, y_pred, labels=[0, 1])
        names = [str(c) for c in class_names]
        fig = px.imshow(cm, text_auto=True, x=names, y=names, color_continuous_scale='Blues',
                        labels=dict(x="Predicted", y="Actual", color="Count"), title=title)
        path = self.output_dir / filename
        fig.write_html(str(path))
        return path
