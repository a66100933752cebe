"""Network layers that keep their own state and expose forward and backward passes."""